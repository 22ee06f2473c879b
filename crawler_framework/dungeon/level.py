"""
Dungeon levels - cells, grid queries and connectivity.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from crawler_framework.dungeon.enemies import EnemyPlacement
from crawler_framework.dungeon.themes import ThemeBlend


Coord = tuple[int, int]

NEIGHBOURS: tuple[Coord, ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


class CellKind(Enum):
    """What occupies a dungeon cell. Exactly one kind per cell."""
    WALL = "#"
    FLOOR = "."
    DOOR = "+"
    ITEM = "i"
    ENEMY_SPAWN = "e"
    STAIRS = ">"

    @property
    def walkable(self) -> bool:
        return self is not CellKind.WALL


# Cells a path may cross between the entry and the stairs
PATH_KINDS = frozenset({CellKind.FLOOR, CellKind.DOOR})


@dataclass(frozen=True)
class DungeonCell:
    """
    A single grid cell.

    Attributes:
        x: Column
        y: Row
        kind: Cell kind
        appearance: Theme-resolved tag id (resolved to glyphs downstream)
        payload: Fragment id for ITEM cells, enemy id for ENEMY_SPAWN cells
    """
    x: int
    y: int
    kind: CellKind
    appearance: str = ""
    payload: Optional[str] = None

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)


@dataclass(frozen=True)
class DungeonLevel:
    """
    A generated level. Immutable once generated.

    Attributes:
        depth: Depth index (0 = first level)
        run_seed: Seed of the whole run
        seed: Seed derived for this depth
        width: Columns
        height: Rows
        cells: Row-major cells
        entry: Entry coordinate (a FLOOR cell)
        stairs: Stairs-down coordinate
        themes: Theme blend used for this depth
        enemies: Enemy placements
    """
    depth: int
    run_seed: int
    seed: int
    width: int
    height: int
    cells: tuple[DungeonCell, ...]
    entry: Coord
    stairs: Coord
    themes: ThemeBlend
    enemies: tuple[EnemyPlacement, ...] = field(default_factory=tuple)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> DungeonCell:
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height} level")
        return self.cells[y * self.width + x]

    def kind_at(self, x: int, y: int) -> CellKind:
        if not self.in_bounds(x, y):
            return CellKind.WALL
        return self.cells[y * self.width + x].kind

    def is_walkable(self, x: int, y: int) -> bool:
        return self.kind_at(x, y).walkable

    def cells_of_kind(self, kind: CellKind) -> list[DungeonCell]:
        return [c for c in self.cells if c.kind is kind]

    def rows(self) -> Iterator[tuple[DungeonCell, ...]]:
        for y in range(self.height):
            yield self.cells[y * self.width:(y + 1) * self.width]

    def enemy(self, enemy_id: str) -> Optional[EnemyPlacement]:
        for placement in self.enemies:
            if placement.id == enemy_id:
                return placement
        return None

    def enemy_at(self, x: int, y: int) -> Optional[EnemyPlacement]:
        for placement in self.enemies:
            if placement.position == (x, y):
                return placement
        return None

    def reachable_from(
        self,
        start: Coord,
        passable: Iterable[CellKind] = PATH_KINDS,
    ) -> set[Coord]:
        """
        Cells reachable from start.

        Only cells of a passable kind are crossed; a non-passable walkable
        cell (item, spawn, stairs) is reached but not expanded.
        """
        passable = frozenset(passable)
        seen = {start}
        queue = deque([start])
        while queue:
            x, y = queue.popleft()
            if (x, y) != start and self.kind_at(x, y) not in passable:
                continue
            for dx, dy in NEIGHBOURS:
                nxt = (x + dx, y + dy)
                if nxt in seen or not self.is_walkable(*nxt):
                    continue
                seen.add(nxt)
                queue.append(nxt)
        return seen

    def path_exists(self, start: Coord, goal: Coord) -> bool:
        """Path from start to goal crossing only floor/door cells."""
        return goal in self.reachable_from(start)

    def validate(self) -> list[str]:
        """Check the structural invariants. Returns a list of problems."""
        problems = []
        if len(self.cells) != self.width * self.height:
            problems.append("cell count does not match dimensions")
            return problems

        for i, cell in enumerate(self.cells):
            if cell.coord != (i % self.width, i // self.width):
                problems.append(f"cell {i} has coordinate {cell.coord}")
                break

        stairs = self.cells_of_kind(CellKind.STAIRS)
        if len(stairs) != 1:
            problems.append(f"expected exactly one stairs cell, found {len(stairs)}")
        elif stairs[0].coord != self.stairs:
            problems.append("stairs coordinate does not match the stairs cell")

        if self.kind_at(*self.entry) is not CellKind.FLOOR:
            problems.append("entry is not a floor cell")

        reachable = self.reachable_from(self.entry)
        if self.stairs not in reachable:
            problems.append("stairs unreachable from entry")
        unreachable = [
            c.coord for c in self.cells
            if c.kind.walkable and c.coord not in reachable
        ]
        if unreachable:
            problems.append(f"{len(unreachable)} walkable cell(s) unreachable from entry")

        for placement in self.enemies:
            cell = self.cell(*placement.position)
            if cell.kind is not CellKind.ENEMY_SPAWN or cell.payload != placement.id:
                problems.append(f"enemy {placement.id} not on its spawn cell")

        return problems

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        palette: list[str] = []
        index: dict[str, int] = {}
        tags = []
        payloads = {}
        for cell in self.cells:
            if cell.appearance not in index:
                index[cell.appearance] = len(palette)
                palette.append(cell.appearance)
            tags.append(index[cell.appearance])
            if cell.payload is not None:
                payloads[f"{cell.x},{cell.y}"] = cell.payload

        return {
            'depth': self.depth,
            'run_seed': self.run_seed,
            'seed': self.seed,
            'width': self.width,
            'height': self.height,
            'rows': ["".join(c.kind.value for c in row) for row in self.rows()],
            'palette': palette,
            'appearance': tags,
            'payloads': payloads,
            'entry': list(self.entry),
            'stairs': list(self.stairs),
            'themes': self.themes.to_dict(),
            'enemies': [e.to_dict() for e in self.enemies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DungeonLevel:
        width = int(data['width'])
        palette = data['palette']
        tags = data['appearance']
        payloads = data.get('payloads', {})

        cells = []
        for y, row in enumerate(data['rows']):
            for x, symbol in enumerate(row):
                cells.append(DungeonCell(
                    x=x,
                    y=y,
                    kind=CellKind(symbol),
                    appearance=palette[tags[y * width + x]],
                    payload=payloads.get(f"{x},{y}"),
                ))

        return cls(
            depth=int(data['depth']),
            run_seed=int(data['run_seed']),
            seed=int(data['seed']),
            width=width,
            height=int(data['height']),
            cells=tuple(cells),
            entry=tuple(data['entry']),
            stairs=tuple(data['stairs']),
            themes=ThemeBlend.from_dict(data['themes']),
            enemies=tuple(EnemyPlacement.from_dict(e) for e in data['enemies']),
        )
