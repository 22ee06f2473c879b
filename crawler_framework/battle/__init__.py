"""
Battle module - turn-based matrix combat.

Provides:
- Combatants (player, enemies) and gauge handling
- Cast payment (try_cast) and regeneration
- The battle resolver state machine
- Enemy spell selection
- Win/lose conditions and rewards
"""

from crawler_framework.battle.combatant import (
    Combatant,
    CombatantKind,
    CastError,
    CastResult,
    try_cast,
    regenerate_gauge,
)
from crawler_framework.battle.ai import SpellPicker, random_spell_picker
from crawler_framework.battle.resolver import (
    BattleResolver,
    BattleState,
    BattleResult,
    BattleEvent,
    BattleOutcome,
    BattleRewards,
    CastCommand,
    WaitCommand,
    Command,
    CastReport,
    EffectReport,
    RejectReason,
    arena_slots,
)

__all__ = [
    # Combatant
    "Combatant",
    "CombatantKind",
    "CastError",
    "CastResult",
    "try_cast",
    "regenerate_gauge",
    # AI
    "SpellPicker",
    "random_spell_picker",
    # Resolver
    "BattleResolver",
    "BattleState",
    "BattleResult",
    "BattleEvent",
    "BattleOutcome",
    "BattleRewards",
    "CastCommand",
    "WaitCommand",
    "Command",
    "CastReport",
    "EffectReport",
    "RejectReason",
    "arena_slots",
]
