"""
Spells module - fragments, logic, composition, effects.

Provides:
- Spell fragments and target patterns
- Conditional logic trees evaluated against a battle snapshot
- Composition with validation and cost
- Effect application with per-step clamping
"""

from crawler_framework.spells.pattern import TargetPattern, PatternMode, MAX_REACH
from crawler_framework.spells.fragment import SpellFragment
from crawler_framework.spells.logic import (
    BattleContext,
    CombatantSnapshot,
    Subject,
    Quantity,
    Comparator,
    Compare,
    AllOf,
    AnyOf,
    Not,
    Predicate,
    Leaf,
    If,
    Sequence,
    ConditionalNode,
    iter_leaves,
    reached_leaves,
    sequence_of,
)
from crawler_framework.spells.spell import (
    Spell,
    CompositionError,
    CompositionErrorKind,
    compose_spell,
    compose_from_inventory,
    cast_cost,
)
from crawler_framework.spells.effects import apply_effect, trace_effect, EffectTrace

__all__ = [
    # Pattern
    "TargetPattern",
    "PatternMode",
    "MAX_REACH",
    # Fragment
    "SpellFragment",
    # Logic
    "BattleContext",
    "CombatantSnapshot",
    "Subject",
    "Quantity",
    "Comparator",
    "Compare",
    "AllOf",
    "AnyOf",
    "Not",
    "Predicate",
    "Leaf",
    "If",
    "Sequence",
    "ConditionalNode",
    "iter_leaves",
    "reached_leaves",
    "sequence_of",
    # Spell
    "Spell",
    "CompositionError",
    "CompositionErrorKind",
    "compose_spell",
    "compose_from_inventory",
    "cast_cost",
    # Effects
    "apply_effect",
    "trace_effect",
    "EffectTrace",
]
