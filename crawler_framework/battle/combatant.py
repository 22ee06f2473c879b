"""
Combatants - participants in battle, and gauge handling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from crawler_engine.algebra import Matrix
from crawler_engine.core.component import component_from_record
from crawler_framework.components import (
    FragmentInventory,
    GridPosition,
    HealthMatrix,
    SpellGauge,
)
from crawler_framework.spells import CombatantSnapshot, Spell


class CombatantKind(Enum):
    """Type of combatant."""
    PLAYER = "player"
    ENEMY = "enemy"
    BOSS = "boss"


@dataclass
class Combatant:
    """
    A participant in battle.

    Wraps components for convenient battle access. The player carries a
    fragment inventory; enemies carry a fixed spell list.
    """
    id: str
    name: str
    kind: CombatantKind

    health: HealthMatrix
    gauge: SpellGauge
    position: GridPosition = field(default_factory=GridPosition)

    # Player only
    inventory: Optional[FragmentInventory] = None
    # Enemy only
    spells: list[Spell] = field(default_factory=list)
    drops: list[str] = field(default_factory=list)

    # Catalog type and opaque appearance tag for renderers
    type_id: str = ""
    appearance: str = ""

    @property
    def is_player(self) -> bool:
        return self.kind is CombatantKind.PLAYER

    @property
    def is_defeated(self) -> bool:
        """All four health cells are zero."""
        return self.health.is_defeated

    @property
    def is_alive(self) -> bool:
        return not self.health.is_defeated

    @property
    def matrix(self) -> Matrix:
        return self.health.matrix

    def set_matrix(self, matrix: Matrix) -> None:
        self.health.matrix = matrix

    def snapshot(self) -> CombatantSnapshot:
        """Read-only view for predicate evaluation."""
        return CombatantSnapshot(
            health=self.health.matrix,
            gauge=self.gauge.current,
            gauge_max=self.gauge.maximum,
        )

    def clone(self) -> Combatant:
        """Deep copy with independent components."""
        return Combatant(
            id=self.id,
            name=self.name,
            kind=self.kind,
            health=self.health.clone(),
            gauge=self.gauge.clone(),
            position=self.position.clone(),
            inventory=self.inventory.clone() if self.inventory is not None else None,
            spells=list(self.spells),
            drops=list(self.drops),
            type_id=self.type_id,
            appearance=self.appearance,
        )

    def to_dict(self) -> dict[str, Any]:
        components = [self.health, self.gauge, self.position]
        if self.inventory is not None:
            components.append(self.inventory)
        return {
            'id': self.id,
            'name': self.name,
            'kind': self.kind.value,
            'type_id': self.type_id,
            'appearance': self.appearance,
            'components': [c.to_record() for c in components],
            'spells': [s.to_dict() for s in self.spells],
            'drops': list(self.drops),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Combatant:
        parts = {
            type(comp): comp
            for comp in (component_from_record(r) for r in data['components'])
        }
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            kind=CombatantKind(data['kind']),
            health=parts[HealthMatrix],
            gauge=parts[SpellGauge],
            position=parts.get(GridPosition, GridPosition()),
            inventory=parts.get(FragmentInventory),
            spells=[Spell.from_dict(s) for s in data.get('spells', [])],
            drops=list(data.get('drops', [])),
            type_id=data.get('type_id', ''),
            appearance=data.get('appearance', ''),
        )


class CastError(Enum):
    INSUFFICIENT_GAUGE = auto()


@dataclass(frozen=True)
class CastResult:
    """
    Outcome of trying to pay for a spell.

    Attributes:
        spell: The spell (ready for resolution when successful)
        cost: Gauge cost
        error: Why the cast failed, or None
        gauge_after: Caster's gauge after the attempt
    """
    spell: Spell
    cost: int
    error: Optional[CastError] = None
    gauge_after: int = 0

    @property
    def success(self) -> bool:
        return self.error is None


def try_cast(combatant: Combatant, spell: Spell) -> CastResult:
    """
    Pay for a spell.

    On INSUFFICIENT_GAUGE nothing is mutated. On success the cost is
    deducted from the combatant's gauge.
    """
    cost = spell.cost
    if not combatant.gauge.spend(cost):
        return CastResult(
            spell=spell,
            cost=cost,
            error=CastError.INSUFFICIENT_GAUGE,
            gauge_after=combatant.gauge.current,
        )
    return CastResult(spell=spell, cost=cost, gauge_after=combatant.gauge.current)


def regenerate_gauge(combatant: Combatant) -> int:
    """Restore one round of gauge. Returns the amount gained."""
    return combatant.gauge.restore(combatant.gauge.regen)
