"""
Dungeon module - procedural level generation.

Provides:
- Cells and immutable levels
- Depth-weighted themes and blending
- Enemy types, placements and depth scaling
- Room-and-corridor layout
- Deterministic level generator and background pre-generation
"""

from crawler_framework.dungeon.themes import (
    WeightCurve,
    ThemeDescriptor,
    ThemeBlend,
    select_themes,
    blended_difficulty,
    difficulty_at,
)
from crawler_framework.dungeon.enemies import (
    SpellRecipe,
    EnemyType,
    EnemyPlacement,
    enemy_count,
    health_target,
    spell_power,
    distribute_health,
)
from crawler_framework.dungeon.level import (
    CellKind,
    DungeonCell,
    DungeonLevel,
)
from crawler_framework.dungeon.generator import DungeonGenerator, generate_level
from crawler_framework.dungeon.pregen import LevelPregenerator

__all__ = [
    # Themes
    "WeightCurve",
    "ThemeDescriptor",
    "ThemeBlend",
    "select_themes",
    "blended_difficulty",
    "difficulty_at",
    # Enemies
    "SpellRecipe",
    "EnemyType",
    "EnemyPlacement",
    "enemy_count",
    "health_target",
    "spell_power",
    "distribute_health",
    # Levels
    "CellKind",
    "DungeonCell",
    "DungeonLevel",
    # Generation
    "DungeonGenerator",
    "generate_level",
    "LevelPregenerator",
]
