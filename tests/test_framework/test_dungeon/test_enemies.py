import pytest

from crawler_engine.algebra import Matrix
from crawler_framework.battle import CombatantKind
from crawler_framework.dungeon import (
    EnemyPlacement,
    EnemyType,
    SpellRecipe,
    distribute_health,
    enemy_count,
    health_target,
    spell_power,
)
from crawler_framework.dungeon.enemies import build_enemy_spells, gauge_for


def test_distribute_health_exact_sum():
    for total in range(1, 40):
        for shape in [(1, 1, 1, 1), (2, 1, 1, 2), (3, 0, 0, 1), (0, 0, 0, 5)]:
            matrix = distribute_health(total, shape)
            assert matrix.magnitude == total
            for cell, weight in zip(matrix.cells, shape):
                if weight == 0:
                    assert cell == 0


def test_distribute_health_remainder_order():
    assert distribute_health(6, (1, 1, 1, 1)) == Matrix(2, 2, 1, 1)
    assert distribute_health(7, (2, 1, 1, 2)) == Matrix(3, 1, 1, 2)


def test_invalid_shape():
    with pytest.raises(ValueError):
        EnemyType(id="bad", name="Bad", shape=(0, 0, 0, 0))
    with pytest.raises(ValueError):
        EnemyType(id="bad", name="Bad", shape=(1, -1, 1, 1))


def test_enemy_count_grows_and_caps(config):
    counts = [enemy_count(depth, config) for depth in range(40)]
    assert counts == sorted(counts)
    assert counts[0] == config.base_enemies
    assert max(counts) == config.max_enemies


def test_health_target(config):
    assert health_target(0, 1.0, config) == config.base_enemy_health
    assert health_target(3, 1.5, config) == round((6 + 2 * 3) * 1.5)
    assert health_target(0, 0.0, config) == 1


def test_spell_power_and_gauge(config):
    assert spell_power(0, config) == 1
    assert spell_power(3, config) == 2
    assert gauge_for(0, config) == (8, 2)
    assert gauge_for(8, config) == (16, 4)


def test_build_enemy_spells_scales_power(catalog, config):
    rat = catalog.enemies["rat"]
    plain = build_enemy_spells(rat, catalog.fragments, 1, config)
    doubled = build_enemy_spells(rat, catalog.fragments, 2, config)

    assert plain[0].preview != doubled[0].preview
    assert doubled[0].magnitude == 2 * plain[0].magnitude
    # Scaling power never widens the area
    assert doubled[0].pattern == plain[0].pattern


def test_unknown_recipe_fragment_skipped(catalog, config, caplog):
    odd = EnemyType(id="odd", name="Odd", spells=(SpellRecipe("Nope", ("missing",)),))
    assert build_enemy_spells(odd, catalog.fragments, 1, config) == ()
    assert "skipped" in caplog.text


def test_placement_to_combatant():
    placement = EnemyPlacement(
        id="d0-e0",
        type_id="rat",
        name="Rat",
        kind=CombatantKind.ENEMY,
        position=(3, 4),
        health=Matrix(2, 2, 1, 1),
        gauge_max=8,
        gauge_regen=2,
        drops=("spark",),
    )

    first = placement.to_combatant()
    first.set_matrix(Matrix.zero())
    second = placement.to_combatant()

    assert second.matrix == Matrix(2, 2, 1, 1)
    assert second.gauge.current == second.gauge.maximum == 8
    assert second.position.coord == (3, 4)
    assert second.drops == ["spark"]
    assert EnemyPlacement.from_dict(placement.to_dict()) == placement


def test_enemy_type_dict_round_trip(catalog):
    warden = catalog.enemies["warden"]
    assert warden.kind is CombatantKind.BOSS
    assert EnemyType.from_dict(warden.to_dict()) == warden
