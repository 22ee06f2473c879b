import threading

from crawler_framework.dungeon import DungeonGenerator, LevelPregenerator


class FlakyGenerator:
    """Raises on the first call, then delegates."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = 0
        self._lock = threading.Lock()

    def generate(self, seed, depth):
        with self._lock:
            self.calls += 1
            first = self.calls == 1
        if first:
            raise RuntimeError("worker blew up")
        return self.inner.generate(seed, depth)


def test_scheduled_level_matches_direct(catalog):
    generator = DungeonGenerator(catalog)
    with LevelPregenerator(generator) as pregen:
        assert pregen.schedule(5, 1)
        assert pregen.pending == [(5, 1)]
        level = pregen.take(5, 1)
        assert pregen.pending == []
    assert level == generator.generate(5, 1)


def test_take_without_schedule(catalog):
    generator = DungeonGenerator(catalog)
    with LevelPregenerator(generator) as pregen:
        assert pregen.take(8, 2) == generator.generate(8, 2)


def test_double_schedule(catalog):
    with LevelPregenerator(DungeonGenerator(catalog)) as pregen:
        assert pregen.schedule(1, 1)
        assert not pregen.schedule(1, 1)
        assert pregen.schedule(1, 2)


def test_schedule_after_shutdown(catalog):
    pregen = LevelPregenerator(DungeonGenerator(catalog))
    pregen.shutdown()
    assert not pregen.schedule(1, 1)
    # Still usable synchronously
    assert pregen.take(1, 1).depth == 1


def test_cancel_clears_pending(catalog):
    with LevelPregenerator(DungeonGenerator(catalog)) as pregen:
        pregen.schedule(3, 1)
        pregen.schedule(3, 2)
        pregen.cancel()
        assert pregen.pending == []
        assert not pregen.is_ready(3, 1)


def test_failed_background_task_regenerates(catalog, caplog):
    flaky = FlakyGenerator(DungeonGenerator(catalog))
    with LevelPregenerator(flaky) as pregen:
        pregen.schedule(4, 3)
        level = pregen.take(4, 3)

    assert level == DungeonGenerator(catalog).generate(4, 3)
    assert flaky.calls == 2
    assert "failed" in caplog.text
