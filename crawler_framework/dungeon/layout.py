"""
Room-and-corridor layout carving.

Works on a mutable grid of CellKind before the level is frozen.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from typing import Iterator

from crawler_framework.dungeon.level import NEIGHBOURS, PATH_KINDS, CellKind, Coord


Grid = list[list[CellKind]]


@dataclass(frozen=True)
class Room:
    """Rectangle of floor cells. (x, y) is the top-left interior cell."""
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> Coord:
        return (self.x + self.width // 2, self.y + self.height // 2)

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def intersects(self, other: Room, margin: int = 1) -> bool:
        return not (
            self.x + self.width + margin <= other.x
            or other.x + other.width + margin <= self.x
            or self.y + self.height + margin <= other.y
            or other.y + other.height + margin <= self.y
        )

    def cells(self) -> Iterator[Coord]:
        for y in range(self.y, self.y + self.height):
            for x in range(self.x, self.x + self.width):
                yield (x, y)


@dataclass
class Layout:
    """Carved grid plus the rooms that produced it."""
    width: int
    height: int
    grid: Grid
    rooms: list[Room]

    def kind_at(self, x: int, y: int) -> CellKind:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return CellKind.WALL
        return self.grid[y][x]

    def set(self, coord: Coord, kind: CellKind) -> None:
        x, y = coord
        self.grid[y][x] = kind

    def in_room(self, x: int, y: int) -> bool:
        return any(room.contains(x, y) for room in self.rooms)

    def walkable_cells(self) -> list[Coord]:
        return [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.grid[y][x].walkable
        ]

    def distances_from(self, start: Coord) -> dict[Coord, int]:
        """BFS step distances over floor/door cells."""
        dist = {start: 0}
        queue = deque([start])
        while queue:
            x, y = queue.popleft()
            if (x, y) != start and self.kind_at(x, y) not in PATH_KINDS:
                continue
            for dx, dy in NEIGHBOURS:
                nxt = (x + dx, y + dy)
                if nxt in dist or not self.kind_at(*nxt).walkable:
                    continue
                dist[nxt] = dist[(x, y)] + 1
                queue.append(nxt)
        return dist

    def all_reachable(self, start: Coord) -> bool:
        reached = self.distances_from(start)
        return all(cell in reached for cell in self.walkable_cells())


def place_rooms(
    rng: random.Random,
    width: int,
    height: int,
    count: int,
    min_size: int,
    max_size: int,
) -> list[Room]:
    """
    Scatter non-overlapping rooms with a one-tile wall gap.

    Falls back to a single centred room when nothing fits.
    """
    rooms: list[Room] = []
    attempts = count * 10
    for _ in range(attempts):
        if len(rooms) >= count:
            break
        w = rng.randint(min_size, max_size)
        h = rng.randint(min_size, max_size)
        if w + 2 > width or h + 2 > height:
            continue
        x = rng.randint(1, width - w - 1)
        y = rng.randint(1, height - h - 1)
        room = Room(x, y, w, h)
        if any(room.intersects(other) for other in rooms):
            continue
        rooms.append(room)

    if not rooms:
        w = max(1, min(min_size, width - 2))
        h = max(1, min(min_size, height - 2))
        rooms.append(Room((width - w) // 2, (height - h) // 2, w, h))
    return rooms


def _corridor(start: Coord, end: Coord, horizontal_first: bool) -> Iterator[Coord]:
    (x0, y0), (x1, y1) = start, end
    step_x = 1 if x1 >= x0 else -1
    step_y = 1 if y1 >= y0 else -1
    if horizontal_first:
        for x in range(x0, x1 + step_x, step_x):
            yield (x, y0)
        for y in range(y0, y1 + step_y, step_y):
            yield (x1, y)
    else:
        for y in range(y0, y1 + step_y, step_y):
            yield (x0, y)
        for x in range(x0, x1 + step_x, step_x):
            yield (x, y1)


def carve_layout(
    rng: random.Random,
    width: int,
    height: int,
    room_count: int,
    min_size: int,
    max_size: int,
) -> Layout:
    """
    Carve rooms joined in sequence by L-shaped corridors.

    Corridor cells outside rooms that touch a room interior become doors.
    """
    grid: Grid = [[CellKind.WALL] * width for _ in range(height)]
    rooms = place_rooms(rng, width, height, room_count, min_size, max_size)
    layout = Layout(width, height, grid, rooms)

    for room in rooms:
        for coord in room.cells():
            layout.set(coord, CellKind.FLOOR)

    corridor: set[Coord] = set()
    for previous, current in zip(rooms, rooms[1:]):
        horizontal_first = rng.random() < 0.5
        for coord in _corridor(previous.center, current.center, horizontal_first):
            if layout.kind_at(*coord) is CellKind.WALL:
                layout.set(coord, CellKind.FLOOR)
                corridor.add(coord)

    for x, y in sorted(corridor):
        if any(layout.in_room(x + dx, y + dy) for dx, dy in NEIGHBOURS):
            layout.set((x, y), CellKind.DOOR)

    return layout


def rank_room_cells(layout: Layout, entry: Coord) -> list[Coord]:
    """
    Reachable room floor cells, farthest from the entry (BFS) first.

    Ties go to the smaller y, then the smaller x.
    """
    dist = layout.distances_from(entry)
    cells = [
        coord for coord in dist
        if coord != entry
        and layout.kind_at(*coord) is CellKind.FLOOR
        and layout.in_room(*coord)
    ]
    return sorted(cells, key=lambda c: (-dist[c], c[1], c[0]))


def try_occupy(layout: Layout, coord: Coord, kind: CellKind, entry: Coord) -> bool:
    """
    Turn a room floor cell into an item/spawn/stairs cell.

    The change is kept only if every walkable cell stays reachable from
    the entry through floor/door cells.
    """
    if coord == entry or layout.kind_at(*coord) is not CellKind.FLOOR:
        return False
    layout.set(coord, kind)
    if layout.all_reachable(entry):
        return True
    layout.set(coord, CellKind.FLOOR)
    return False
