"""
Level generator.

Each depth is generated from derive_seed(run_seed, depth), so any depth
can be rebuilt on its own and the same inputs always give the same level.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Optional

from crawler_engine.core.rng import derive_seed, weighted_choice
from crawler_framework.config import RulesConfig
from crawler_framework.dungeon.enemies import (
    EnemyPlacement,
    EnemyType,
    build_enemy_spells,
    distribute_health,
    enemy_count,
    gauge_for,
    health_target,
    spell_power,
)
from crawler_framework.dungeon.layout import (
    Layout,
    carve_layout,
    rank_room_cells,
    try_occupy,
)
from crawler_framework.dungeon.level import CellKind, Coord, DungeonCell, DungeonLevel
from crawler_framework.dungeon.themes import (
    ThemeBlend,
    ThemeDescriptor,
    difficulty_at,
    select_themes,
)

if TYPE_CHECKING:
    from crawler_framework.catalog import GameCatalog

logger = logging.getLogger(__name__)


class DungeonGenerator:
    """
    Procedural level generator.

    Reads only the catalog and config, both treated as immutable, so a
    generator may run on a background thread.
    """

    def __init__(self, catalog: GameCatalog, config: Optional[RulesConfig] = None):
        self.catalog = catalog
        self.config = config or RulesConfig()

    def dimensions(self, depth: int) -> tuple[int, int]:
        cfg = self.config
        width = min(cfg.base_width + 2 * depth, cfg.max_width)
        height = min(cfg.base_height + depth, cfg.max_height)
        return width, height

    def room_count(self, depth: int) -> int:
        return min(self.config.base_rooms + depth // 2, self.config.max_rooms)

    def generate(self, run_seed: int, depth: int) -> DungeonLevel:
        """
        Generate the level at a depth.

        Args:
            run_seed: Seed of the whole run
            depth: Depth index, 0 for the first level

        Returns:
            The generated level
        """
        if depth < 0:
            raise ValueError(f"Depth must be non-negative, got {depth}")

        level_seed = derive_seed(run_seed, depth)
        rng = random.Random(level_seed)
        themes = list(self.catalog.themes.values())

        blend = select_themes(themes, depth, rng)
        width, height = self.dimensions(depth)
        layout = carve_layout(
            rng,
            width,
            height,
            self.room_count(depth),
            self.config.room_min_size,
            self.config.room_max_size,
        )

        entry = layout.rooms[0].center
        stairs = self._place_stairs(layout, entry)

        candidates = [
            coord
            for room in layout.rooms
            for coord in room.cells()
            if coord not in (entry, stairs)
        ]
        candidates = sorted(set(candidates))
        rng.shuffle(candidates)

        payloads: dict[Coord, str] = {}
        self._place_items(layout, entry, candidates, blend, rng, payloads)
        enemies = self._place_enemies(layout, entry, candidates, blend, depth, rng, payloads)

        cells = self._finish_cells(layout, blend, rng, payloads)
        level = DungeonLevel(
            depth=depth,
            run_seed=run_seed,
            seed=level_seed,
            width=width,
            height=height,
            cells=cells,
            entry=entry,
            stairs=stairs,
            themes=blend,
            enemies=tuple(enemies),
        )

        problems = level.validate()
        if problems:
            logger.error(f"Level {depth} (seed {run_seed}) failed verification: {problems}")

        logger.info(
            f"Generated depth {depth}: {width}x{height}, {len(layout.rooms)} rooms, "
            f"{len(enemies)} enemies, theme {blend.primary}"
            + (f"/{blend.secondary} ({blend.blend:.2f})" if blend.secondary else "")
        )
        return level

    # Placement

    def _place_stairs(self, layout: Layout, entry: Coord) -> Coord:
        for coord in rank_room_cells(layout, entry):
            if try_occupy(layout, coord, CellKind.STAIRS, entry):
                return coord

        # Single-cell room: put the stairs next to the entry
        dist = layout.distances_from(entry)
        for coord in sorted(dist, key=lambda c: (-dist[c], c[1], c[0])):
            if try_occupy(layout, coord, CellKind.STAIRS, entry):
                return coord
        raise RuntimeError("No cell available for the stairs")

    def _theme_for(self, blend: ThemeBlend, rng: random.Random) -> ThemeDescriptor:
        theme_id = blend.primary
        if blend.secondary and rng.random() < blend.blend:
            theme_id = blend.secondary
        return self.catalog.themes[theme_id]

    def _occupy_next(
        self,
        layout: Layout,
        entry: Coord,
        candidates: list[Coord],
        kind: CellKind,
    ) -> Optional[Coord]:
        while candidates:
            coord = candidates.pop()
            if try_occupy(layout, coord, kind, entry):
                return coord
        return None

    def _pick_fragment(self, theme: ThemeDescriptor, rng: random.Random) -> Optional[str]:
        fragments = self.catalog.fragments
        pool = [fid for fid in theme.fragment_pool if fid in fragments]
        if not pool:
            pool = list(fragments)
        return weighted_choice(rng, pool, [fragments[fid].rarity for fid in pool])

    def _place_items(
        self,
        layout: Layout,
        entry: Coord,
        candidates: list[Coord],
        blend: ThemeBlend,
        rng: random.Random,
        payloads: dict[Coord, str],
    ) -> None:
        for _ in range(self.config.items_per_level):
            fragment_id = self._pick_fragment(self._theme_for(blend, rng), rng)
            if fragment_id is None:
                return
            coord = self._occupy_next(layout, entry, candidates, CellKind.ITEM)
            if coord is None:
                logger.warning("Ran out of room cells while placing items")
                return
            payloads[coord] = fragment_id

    def _pick_enemy_type(self, theme: ThemeDescriptor, rng: random.Random) -> Optional[EnemyType]:
        enemies = self.catalog.enemies
        pool = [eid for eid in theme.enemy_pool if eid in enemies]
        if not pool:
            pool = list(enemies)
        if not pool:
            return None
        return enemies[rng.choice(pool)]

    def _place_enemies(
        self,
        layout: Layout,
        entry: Coord,
        candidates: list[Coord],
        blend: ThemeBlend,
        depth: int,
        rng: random.Random,
        payloads: dict[Coord, str],
    ) -> list[EnemyPlacement]:
        config = self.config
        themes = list(self.catalog.themes.values())
        total = health_target(depth, difficulty_at(themes, depth), config)
        power = spell_power(depth, config)
        gauge_max, gauge_regen = gauge_for(depth, config)

        placements = []
        for index in range(enemy_count(depth, config)):
            theme = self._theme_for(blend, rng)
            enemy_type = self._pick_enemy_type(theme, rng)
            if enemy_type is None:
                break
            coord = self._occupy_next(layout, entry, candidates, CellKind.ENEMY_SPAWN)
            if coord is None:
                logger.warning(f"Ran out of room cells after {index} enemies at depth {depth}")
                break

            if enemy_type.drops:
                drops = (rng.choice(enemy_type.drops),)
            else:
                dropped = self._pick_fragment(theme, rng)
                drops = (dropped,) if dropped else ()

            enemy_id = f"d{depth}-e{index}"
            payloads[coord] = enemy_id
            placements.append(EnemyPlacement(
                id=enemy_id,
                type_id=enemy_type.id,
                name=enemy_type.name,
                kind=enemy_type.kind,
                position=coord,
                health=distribute_health(total, enemy_type.shape),
                gauge_max=gauge_max,
                gauge_regen=gauge_regen,
                spells=build_enemy_spells(enemy_type, self.catalog.fragments, power, config),
                drops=drops,
                appearance=enemy_type.appearance or f"enemy.{enemy_type.id}",
            ))
        return placements

    def _finish_cells(
        self,
        layout: Layout,
        blend: ThemeBlend,
        rng: random.Random,
        payloads: dict[Coord, str],
    ) -> tuple[DungeonCell, ...]:
        cells = []
        for y in range(layout.height):
            for x in range(layout.width):
                kind = layout.grid[y][x]
                theme = self._theme_for(blend, rng)
                cells.append(DungeonCell(
                    x=x,
                    y=y,
                    kind=kind,
                    appearance=theme.tag_for(kind.value),
                    payload=payloads.get((x, y)),
                ))
        return tuple(cells)


def generate_level(
    seed: int,
    depth: int,
    catalog: GameCatalog,
    config: Optional[RulesConfig] = None,
) -> DungeonLevel:
    """Generate one level. Pure: the same arguments give an equal level."""
    return DungeonGenerator(catalog, config).generate(seed, depth)
