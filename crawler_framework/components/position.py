"""
Position components - grid coordinates and movement directions.
"""

from __future__ import annotations

from enum import Enum

from crawler_engine.core.component import Component, register_component


class Direction(Enum):
    """Cardinal movement directions on the dungeon grid (y grows downward)."""
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


@register_component
class GridPosition(Component):
    """
    Tile coordinate on a grid.

    Attributes:
        x: Column
        y: Row
    """
    x: int = 0
    y: int = 0

    @property
    def coord(self) -> tuple[int, int]:
        return (self.x, self.y)

    def offset_to(self, other: GridPosition) -> tuple[int, int]:
        """Relative (dx, dy) from this position to another."""
        return (other.x - self.x, other.y - self.y)

    def stepped(self, direction: Direction) -> tuple[int, int]:
        """Coordinate one step away in a direction."""
        return (self.x + direction.dx, self.y + direction.dy)

    def chebyshev(self, other: GridPosition) -> int:
        return max(abs(other.x - self.x), abs(other.y - self.y))
