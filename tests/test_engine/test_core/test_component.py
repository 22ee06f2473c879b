import pytest

from crawler_engine.core.component import (
    component_from_record,
    get_all_component_types,
    get_component_type,
)
from crawler_engine.algebra import Matrix
from crawler_framework.components import GridPosition, HealthMatrix, SpellGauge


def test_components_are_registered():
    types = get_all_component_types()
    assert "HealthMatrix" in types
    assert get_component_type("SpellGauge") is SpellGauge


def test_record_round_trip():
    health = HealthMatrix(matrix=Matrix(1, 2, 3, 4))
    record = health.to_record()

    assert record["type"] == "HealthMatrix"
    assert component_from_record(record) == health


def test_unknown_record_type():
    with pytest.raises(KeyError):
        component_from_record({"type": "Nope", "data": {}})


def test_clone_is_independent():
    pos = GridPosition(x=1, y=2)
    copy = pos.clone()
    copy.x = 5
    assert pos.x == 1


def test_extra_fields_rejected():
    with pytest.raises(ValueError):
        GridPosition(x=1, y=2, z=3)
