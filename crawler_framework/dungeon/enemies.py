"""
Enemy types, placements and depth scaling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from crawler_engine.algebra import Matrix
from crawler_framework.battle.combatant import Combatant, CombatantKind
from crawler_framework.components import GridPosition, HealthMatrix, SpellGauge
from crawler_framework.config import RulesConfig
from crawler_framework.spells import (
    CompositionError,
    Spell,
    SpellFragment,
    compose_spell,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpellRecipe:
    """Named flat list of fragment ids an enemy type casts."""
    name: str
    fragments: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {'name': self.name, 'fragments': list(self.fragments)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpellRecipe:
        return cls(name=data['name'], fragments=tuple(data['fragments']))


@dataclass(frozen=True)
class EnemyType:
    """
    Catalog entry for an enemy.

    Attributes:
        id: Catalog id
        name: Display name
        kind: ENEMY or BOSS
        shape: Relative weight of each health cell (a, b, c, d)
        spells: Spell recipes; power scales with depth
        drops: Fragment ids this enemy may drop
        appearance: Opaque tag for renderers
    """
    id: str
    name: str
    kind: CombatantKind = CombatantKind.ENEMY
    shape: tuple[int, int, int, int] = (1, 1, 1, 1)
    spells: tuple[SpellRecipe, ...] = ()
    drops: tuple[str, ...] = ()
    appearance: str = ""

    def __post_init__(self) -> None:
        if len(self.shape) != 4 or any(w < 0 for w in self.shape) or sum(self.shape) == 0:
            raise ValueError(
                f"Enemy '{self.id}' shape must be four non-negative weights with a positive sum"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'kind': self.kind.value,
            'shape': list(self.shape),
            'spells': [s.to_dict() for s in self.spells],
            'drops': list(self.drops),
            'appearance': self.appearance,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnemyType:
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            kind=CombatantKind(data.get('kind', 'enemy')),
            shape=tuple(int(w) for w in data.get('shape', [1, 1, 1, 1])),
            spells=tuple(SpellRecipe.from_dict(s) for s in data.get('spells', [])),
            drops=tuple(data.get('drops', [])),
            appearance=data.get('appearance', ''),
        )


@dataclass(frozen=True)
class EnemyPlacement:
    """
    An enemy placed on a level.

    Immutable; battles work on the Combatant built by to_combatant().
    """
    id: str
    type_id: str
    name: str
    kind: CombatantKind
    position: tuple[int, int]
    health: Matrix
    gauge_max: int
    gauge_regen: int
    spells: tuple[Spell, ...] = ()
    drops: tuple[str, ...] = ()
    appearance: str = ""

    def to_combatant(self) -> Combatant:
        """Fresh battle combatant with a full gauge."""
        return Combatant(
            id=self.id,
            name=self.name,
            kind=self.kind,
            health=HealthMatrix(matrix=self.health),
            gauge=SpellGauge(
                current=self.gauge_max,
                maximum=self.gauge_max,
                regen=self.gauge_regen,
            ),
            position=GridPosition(x=self.position[0], y=self.position[1]),
            spells=list(self.spells),
            drops=list(self.drops),
            type_id=self.type_id,
            appearance=self.appearance,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'type_id': self.type_id,
            'name': self.name,
            'kind': self.kind.value,
            'position': list(self.position),
            'health': self.health.to_list(),
            'gauge_max': self.gauge_max,
            'gauge_regen': self.gauge_regen,
            'spells': [s.to_dict() for s in self.spells],
            'drops': list(self.drops),
            'appearance': self.appearance,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnemyPlacement:
        return cls(
            id=data['id'],
            type_id=data['type_id'],
            name=data.get('name', ''),
            kind=CombatantKind(data['kind']),
            position=tuple(data['position']),
            health=Matrix.from_cells(data['health']),
            gauge_max=int(data['gauge_max']),
            gauge_regen=int(data['gauge_regen']),
            spells=tuple(Spell.from_dict(s) for s in data.get('spells', [])),
            drops=tuple(data.get('drops', [])),
            appearance=data.get('appearance', ''),
        )


# Depth scaling

def enemy_count(depth: int, config: RulesConfig) -> int:
    return min(config.base_enemies + depth // config.enemy_depth_step, config.max_enemies)


def health_target(depth: int, difficulty: float, config: RulesConfig) -> int:
    """Total health magnitude for enemies at a depth."""
    base = config.base_enemy_health + config.enemy_health_per_depth * depth
    return max(1, round(base * difficulty))


def spell_power(depth: int, config: RulesConfig) -> int:
    """Integer factor applied to enemy spell matrices."""
    return 1 + depth // config.spell_scaling_step


def gauge_for(depth: int, config: RulesConfig) -> tuple[int, int]:
    """(maximum, regen) of an enemy gauge at a depth."""
    maximum = config.enemy_gauge_base + config.enemy_gauge_per_depth * depth
    regen = config.enemy_regen_base + depth // config.enemy_regen_depth_step
    return maximum, regen


def distribute_health(total: int, shape: tuple[int, int, int, int]) -> Matrix:
    """
    Split a health total over the four cells in proportion to shape.

    Cells sum exactly to total: floors first, then the remainder goes to
    the largest fractional parts (earlier cells win ties).
    """
    weight_sum = sum(shape)
    exact = [total * w / weight_sum for w in shape]
    cells = [int(x) for x in exact]
    remainder = total - sum(cells)
    order = sorted(range(4), key=lambda i: (-(exact[i] - cells[i]), i))
    for i in order[:remainder]:
        cells[i] += 1
    return Matrix.from_cells(cells)


def build_enemy_spells(
    enemy_type: EnemyType,
    fragments: Mapping[str, SpellFragment],
    power: int,
    config: RulesConfig,
) -> tuple[Spell, ...]:
    """
    Compose an enemy type's spells with matrices scaled by power.

    Recipes naming unknown fragments are skipped with a warning.
    """
    spells = []
    for recipe in enemy_type.spells:
        missing = [fid for fid in recipe.fragments if fid not in fragments]
        if missing:
            logger.warning(f"Enemy '{enemy_type.id}' spell {recipe.name!r} skipped: unknown {missing}")
            continue

        parts = [fragments[fid].scaled(power) for fid in recipe.fragments]
        result = compose_spell(parts, name=recipe.name, config=config)
        if isinstance(result, CompositionError):
            logger.warning(f"Enemy '{enemy_type.id}' spell {recipe.name!r} skipped: {result.message}")
            continue
        spells.append(result)
    return tuple(spells)
