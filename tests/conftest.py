import pytest

from crawler_engine.algebra import Matrix, Operation
from crawler_framework.battle import Combatant, CombatantKind
from crawler_framework.catalog import GameCatalog
from crawler_framework.components import FragmentInventory, HealthMatrix, SpellGauge
from crawler_framework.config import RulesConfig
from crawler_framework.spells import SpellFragment, TargetPattern


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from crawler_engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def config():
    return RulesConfig()


@pytest.fixture(scope="session")
def catalog():
    """Bundled starter catalog (read-only)."""
    return GameCatalog.default()


@pytest.fixture
def f1():
    """Subtract 1 from cell a of the tile straight ahead."""
    return SpellFragment(
        id="f1",
        matrix=Matrix(1, 0, 0, 0),
        operation=Operation.SUBTRACT,
        pattern=TargetPattern.of((0, 1)),
    )


@pytest.fixture
def chip():
    """Subtract 1 from every cell of the tile straight ahead."""
    return SpellFragment(
        id="chip",
        matrix=Matrix.filled(1),
        operation=Operation.SUBTRACT,
        pattern=TargetPattern.of((0, 1)),
    )


@pytest.fixture
def make_combatant():
    """Factory for battle combatants with a given health and gauge."""
    def _make(
        combatant_id="enemy",
        health=(2, 2, 2, 2),
        gauge=20,
        regen=0,
        kind=CombatantKind.ENEMY,
        spells=None,
        drops=None,
    ):
        return Combatant(
            id=combatant_id,
            name=combatant_id.title(),
            kind=kind,
            health=HealthMatrix(matrix=Matrix.from_cells(health)),
            gauge=SpellGauge(current=gauge, maximum=max(gauge, 1), regen=regen),
            inventory=FragmentInventory() if kind is CombatantKind.PLAYER else None,
            spells=list(spells or []),
            drops=list(drops or []),
        )
    return _make
