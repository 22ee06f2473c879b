from crawler_engine.algebra import Matrix
from crawler_framework.spells import MAX_REACH, TargetPattern


def test_origin_never_stored():
    pattern = TargetPattern.of((0, 0), (0, 1))
    assert (0, 0) not in pattern.offsets
    assert pattern.offsets == frozenset({(0, 1)})


def test_empty_pattern_is_self_target():
    pattern = TargetPattern.self_target()
    assert pattern.is_self_target
    assert pattern.covers((0, 0))
    assert not pattern.covers((0, 1))
    assert pattern.size == 1


def test_includes_self():
    pattern = TargetPattern.of((0, 1), includes_self=True)
    assert not pattern.is_self_target
    assert pattern.covers((0, 0))
    assert pattern.covers((0, 1))
    assert pattern.size == 2


def test_positive_cells_reach_in_their_direction():
    pattern = TargetPattern.from_matrix(Matrix(2, 1, 0, 0))
    assert pattern.offsets == frozenset({(0, 1), (0, 2), (1, 0)})


def test_reach_is_capped():
    pattern = TargetPattern.from_matrix(Matrix(0, 0, 0, 9))
    assert pattern.offsets == frozenset((0, -step) for step in range(1, MAX_REACH + 1))


def test_negative_cell_adds_lateral_neighbours():
    pattern = TargetPattern.from_matrix(Matrix(-1, 0, 0, 0))
    assert pattern.offsets == frozenset({(0, 1), (-1, 1), (1, 1)})

    sideways = TargetPattern.from_matrix(Matrix(0, -1, 0, 0))
    assert sideways.offsets == frozenset({(1, 0), (1, 1), (1, -1)})


def test_zero_matrix_derives_self_target():
    assert TargetPattern.from_matrix(Matrix.zero()).is_self_target


def test_union():
    merged = TargetPattern.of((0, 1)).union(TargetPattern.of((1, 1), includes_self=True))
    assert merged.offsets == frozenset({(0, 1), (1, 1)})
    assert merged.includes_self


def test_dict_round_trip():
    pattern = TargetPattern.of((0, 1), (-1, 2), includes_self=True)
    assert TargetPattern.from_dict(pattern.to_dict()) == pattern
