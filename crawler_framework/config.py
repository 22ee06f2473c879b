"""
Rules configuration - every tunable constant of the simulation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from crawler_engine.algebra import Operation


DEFAULT_OPERATION_WEIGHTS: dict[Operation, int] = {
    Operation.ADD: 1,
    Operation.SUBTRACT: 1,
    Operation.AVERAGE: 1,
    Operation.RESET: 1,
    Operation.MULTIPLY: 3,
    Operation.DOT_PRODUCT: 4,
}


class RulesConfig:
    """Configuration for spell, battle and dungeon rules."""

    def __init__(
        self,
        # Spell composition
        max_tree_depth: int = 6,
        max_tree_nodes: int = 24,
        # Cost formula
        base_cost: int = 1,
        area_cost_factor: int = 1,
        magnitude_cost_factor: int = 1,
        operation_weights: dict[Operation, int] | None = None,
        # Health
        health_floor: int = 0,
        health_ceiling: int = 999,
        # Player
        player_health: int = 10,
        # Gauge
        player_gauge_max: int = 20,
        player_gauge_regen: int = 4,
        enemy_gauge_base: int = 8,
        enemy_gauge_per_depth: int = 1,
        enemy_regen_base: int = 2,
        enemy_regen_depth_step: int = 4,
        # Battle
        max_battle_rounds: int = 100,
        encounter_radius: int = 1,
        # Dungeon layout
        base_width: int = 24,
        base_height: int = 16,
        max_width: int = 64,
        max_height: int = 40,
        base_rooms: int = 4,
        max_rooms: int = 12,
        room_min_size: int = 3,
        room_max_size: int = 7,
        items_per_level: int = 3,
        # Enemies
        base_enemies: int = 2,
        enemy_depth_step: int = 2,
        max_enemies: int = 10,
        base_enemy_health: int = 6,
        enemy_health_per_depth: int = 2,
        spell_scaling_step: int = 3,
    ):
        self.max_tree_depth = max_tree_depth
        self.max_tree_nodes = max_tree_nodes
        self.base_cost = base_cost
        self.area_cost_factor = area_cost_factor
        self.magnitude_cost_factor = magnitude_cost_factor
        self.operation_weights = dict(DEFAULT_OPERATION_WEIGHTS)
        if operation_weights:
            self.operation_weights.update(operation_weights)
        self.health_floor = health_floor
        self.health_ceiling = health_ceiling
        self.player_health = player_health
        self.player_gauge_max = player_gauge_max
        self.player_gauge_regen = player_gauge_regen
        self.enemy_gauge_base = enemy_gauge_base
        self.enemy_gauge_per_depth = enemy_gauge_per_depth
        self.enemy_regen_base = enemy_regen_base
        self.enemy_regen_depth_step = enemy_regen_depth_step
        self.max_battle_rounds = max_battle_rounds
        self.encounter_radius = encounter_radius
        self.base_width = base_width
        self.base_height = base_height
        self.max_width = max_width
        self.max_height = max_height
        self.base_rooms = base_rooms
        self.max_rooms = max_rooms
        self.room_min_size = room_min_size
        self.room_max_size = room_max_size
        self.items_per_level = items_per_level
        self.base_enemies = base_enemies
        self.enemy_depth_step = enemy_depth_step
        self.max_enemies = max_enemies
        self.base_enemy_health = base_enemy_health
        self.enemy_health_per_depth = enemy_health_per_depth
        self.spell_scaling_step = spell_scaling_step

    def operation_weight(self, op: Operation) -> int:
        return self.operation_weights.get(op, 1)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RulesConfig:
        """
        Build from a plain dict (e.g. parsed JSON).

        Operation weights may be keyed by operation value ("multiply").
        Unknown keys raise TypeError.
        """
        kwargs = dict(data)
        weights = kwargs.pop('operation_weights', None)
        if weights:
            kwargs['operation_weights'] = {
                Operation(key): int(value) for key, value in weights.items()
            }
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> RulesConfig:
        """Load from a JSON file."""
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict[str, Any]:
        data = dict(vars(self))
        data['operation_weights'] = {
            op.value: weight for op, weight in self.operation_weights.items()
        }
        return data
