"""
World module - the run controller.

Provides:
- Run state (player, level, progress)
- Grid movement with walls, pickups, encounters and descent
- Spell composition from the player's inventory
- Battle hand-off and run end
"""

from crawler_framework.world.run import (
    DungeonRun,
    RunState,
    RunStatus,
    RunEvent,
    MoveResult,
    MoveOutcome,
    create_player,
    STARTER_INVENTORY,
    STARTER_SPELLS,
)

__all__ = [
    "DungeonRun",
    "RunState",
    "RunStatus",
    "RunEvent",
    "MoveResult",
    "MoveOutcome",
    "create_player",
    "STARTER_INVENTORY",
    "STARTER_SPELLS",
]
