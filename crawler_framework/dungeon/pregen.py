"""
Background level pre-generation.

While the player explores depth N, depth N+1 can be generated on a
single worker thread. The task reads only the immutable catalog and
config and returns a new level, so nothing needs locking.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from crawler_framework.dungeon.generator import DungeonGenerator
from crawler_framework.dungeon.level import DungeonLevel

logger = logging.getLogger(__name__)


class LevelPregenerator:
    """Generates levels ahead of time on one worker thread."""

    def __init__(self, generator: DungeonGenerator):
        self.generator = generator
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="level-pregen",
        )
        self._pending: dict[tuple[int, int], Future] = {}

    @property
    def pending(self) -> list[tuple[int, int]]:
        """(seed, depth) keys scheduled and not yet taken."""
        return list(self._pending)

    def is_ready(self, seed: int, depth: int) -> bool:
        future = self._pending.get((seed, depth))
        return future is not None and future.done()

    def schedule(self, seed: int, depth: int) -> bool:
        """
        Start generating a level in the background.

        Returns False when already scheduled or after shutdown.
        """
        key = (seed, depth)
        if self._executor is None or key in self._pending:
            return False
        self._pending[key] = self._executor.submit(self.generator.generate, seed, depth)
        logger.debug(f"Scheduled pre-generation of depth {depth}")
        return True

    def take(self, seed: int, depth: int) -> DungeonLevel:
        """
        Get a level, waiting for a scheduled one or generating it now.

        A failed background task is logged and the level regenerated here.
        """
        future = self._pending.pop((seed, depth), None)
        if future is not None and not future.cancelled():
            try:
                return future.result()
            except Exception:
                logger.exception(f"Background generation of depth {depth} failed")
        return self.generator.generate(seed, depth)

    def cancel(self) -> None:
        """Discard every pending result."""
        for future in self._pending.values():
            future.cancel()
        self._pending.clear()

    def shutdown(self) -> None:
        self.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> LevelPregenerator:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
