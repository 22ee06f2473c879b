"""
Enemy spell selection.
"""

from __future__ import annotations

import random
from typing import Callable, Optional, Protocol

from crawler_framework.battle.combatant import Combatant
from crawler_framework.spells import Spell


class SpellPicker(Protocol):
    """Chooses the spell an enemy casts this round, or None to wait."""

    def __call__(
        self,
        enemy: Combatant,
        player: Combatant,
        reaches: Callable[[Combatant, Spell, Combatant], bool],
        rng: random.Random,
    ) -> Optional[Spell]:
        ...


def random_spell_picker(
    enemy: Combatant,
    player: Combatant,
    reaches: Callable[[Combatant, Spell, Combatant], bool],
    rng: random.Random,
) -> Optional[Spell]:
    """
    Pick a random affordable spell that reaches the player.

    Returns None (wait) when no spell in the enemy's fixed list fits.
    """
    usable = [
        spell for spell in enemy.spells
        if enemy.gauge.can_afford(spell.cost) and reaches(enemy, spell, player)
    ]
    if not usable:
        return None
    return rng.choice(usable)
