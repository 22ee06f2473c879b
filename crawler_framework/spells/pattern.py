"""
Target patterns - relative tiles a spell affects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator

from crawler_engine.algebra import Matrix


Offset = tuple[int, int]

# Furthest tile a single matrix cell can reach
MAX_REACH = 3

# Direction each cell extends reach in: a, b, c, d
_CELL_DIRECTIONS: tuple[Offset, ...] = (
    (0, 1),   # a: forward
    (1, 0),   # b: right
    (-1, 0),  # c: left
    (0, -1),  # d: back
)


class PatternMode(Enum):
    """How a fragment's pattern combines with the spell's pattern so far."""
    UNION = "union"
    OVERRIDE = "override"


@dataclass(frozen=True)
class TargetPattern:
    """
    A finite set of (dx, dy) offsets relative to the caster.

    (0, 0) is never stored among the offsets; the caster's own tile is
    affected only when includes_self is set. A pattern with no offsets
    and includes_self unset is a self-target pattern.

    Attributes:
        offsets: Relative tiles
        includes_self: Whether the caster's own tile is affected
    """
    offsets: frozenset[Offset] = field(default_factory=frozenset)
    includes_self: bool = False

    def __post_init__(self) -> None:
        cleaned = frozenset(
            (int(dx), int(dy)) for dx, dy in self.offsets if (dx, dy) != (0, 0)
        )
        object.__setattr__(self, 'offsets', cleaned)

    @classmethod
    def of(cls, *offsets: Offset, includes_self: bool = False) -> TargetPattern:
        return cls(frozenset(offsets), includes_self)

    @classmethod
    def self_target(cls) -> TargetPattern:
        return cls(frozenset(), False)

    @classmethod
    def from_matrix(cls, matrix: Matrix) -> TargetPattern:
        """
        Derive a pattern from matrix cell values.

        Each non-zero cell reaches min(|v|, MAX_REACH) tiles along its
        direction (a forward, b right, c left, d back). A negative cell
        also covers the two lateral neighbours of every tile it reaches.
        """
        offsets: set[Offset] = set()
        for value, (dx, dy) in zip(matrix.cells, _CELL_DIRECTIONS):
            reach = min(abs(value), MAX_REACH)
            for step in range(1, reach + 1):
                tile = (dx * step, dy * step)
                offsets.add(tile)
                if value < 0:
                    # Lateral axis is perpendicular to (dx, dy)
                    offsets.add((tile[0] + dy, tile[1] + dx))
                    offsets.add((tile[0] - dy, tile[1] - dx))
        return cls(frozenset(offsets), False)

    @property
    def is_self_target(self) -> bool:
        return not self.offsets and not self.includes_self

    @property
    def size(self) -> int:
        """Number of affected tiles (a self-target pattern counts as one)."""
        if self.is_self_target:
            return 1
        return len(self.offsets) + (1 if self.includes_self else 0)

    def covers(self, offset: Offset) -> bool:
        """Whether a tile at `offset` from the caster is affected."""
        if offset == (0, 0):
            return self.includes_self or self.is_self_target
        return offset in self.offsets

    def union(self, other: TargetPattern) -> TargetPattern:
        return TargetPattern(
            self.offsets | other.offsets,
            self.includes_self or other.includes_self,
        )

    def __iter__(self) -> Iterator[Offset]:
        return iter(sorted(self.offsets))

    def to_dict(self) -> dict[str, Any]:
        return {
            'offsets': [list(o) for o in sorted(self.offsets)],
            'includes_self': self.includes_self,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetPattern:
        return cls(
            frozenset(_offsets(data.get('offsets', []))),
            bool(data.get('includes_self', False)),
        )


def _offsets(raw: Iterable[Iterable[int]]) -> Iterator[Offset]:
    for item in raw:
        dx, dy = item
        yield (int(dx), int(dy))
