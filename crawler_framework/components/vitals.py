"""
Vital components - health matrix and spell gauge.
"""

from __future__ import annotations

from pydantic import Field, model_validator

from crawler_engine.algebra import Matrix
from crawler_engine.core.component import Component, register_component


@register_component
class HealthMatrix(Component):
    """
    A combatant's 2x2 health state.

    The combatant is defeated when all four cells are zero.

    Attributes:
        matrix: Current health matrix
    """
    matrix: Matrix = Field(default_factory=Matrix.zero)

    @property
    def is_defeated(self) -> bool:
        return self.matrix.is_zero

    @property
    def magnitude(self) -> int:
        return self.matrix.magnitude


@register_component
class SpellGauge(Component):
    """
    Resource consumed by casting.

    Attributes:
        current: Current gauge value
        maximum: Upper bound
        regen: Amount restored per battle round
    """
    current: int = 0
    maximum: int = 20
    regen: int = 4

    @model_validator(mode='after')
    def _check_bounds(self) -> SpellGauge:
        if self.maximum < 0:
            raise ValueError("maximum must be non-negative")
        if not 0 <= self.current <= self.maximum:
            raise ValueError(
                f"current {self.current} outside [0, {self.maximum}]"
            )
        return self

    @property
    def is_full(self) -> bool:
        return self.current >= self.maximum

    @property
    def percent(self) -> float:
        if self.maximum <= 0:
            return 0.0
        return self.current / self.maximum

    def can_afford(self, cost: int) -> bool:
        return self.current >= cost

    def spend(self, amount: int) -> bool:
        """Spend gauge. Returns False (and spends nothing) if short."""
        if amount > self.current:
            return False
        self.current -= amount
        return True

    def restore(self, amount: int) -> int:
        """Restore gauge, clamped to maximum. Returns actual gain."""
        gained = max(0, min(amount, self.maximum - self.current))
        self.current += gained
        return gained

    def refill(self) -> None:
        self.current = self.maximum
