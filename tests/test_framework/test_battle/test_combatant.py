from crawler_engine.algebra import Matrix
from crawler_framework.battle import (
    CastError,
    Combatant,
    CombatantKind,
    regenerate_gauge,
    try_cast,
)
from crawler_framework.spells import compose_spell


def test_try_cast_insufficient_gauge(make_combatant, f1):
    spell = compose_spell([f1])
    caster = make_combatant("player", kind=CombatantKind.PLAYER, gauge=3)

    result = try_cast(caster, spell)

    assert not result.success
    assert result.error is CastError.INSUFFICIENT_GAUGE
    assert caster.gauge.current == 3
    assert caster.matrix == Matrix(2, 2, 2, 2)


def test_try_cast_deducts_cost(make_combatant, f1):
    spell = compose_spell([f1])
    caster = make_combatant("player", kind=CombatantKind.PLAYER, gauge=10)

    result = try_cast(caster, spell)

    assert result.success
    assert result.cost == 4
    assert result.gauge_after == 6
    assert caster.gauge.current == 6


def test_regenerate_gauge(make_combatant):
    combatant = make_combatant(gauge=20, regen=4)
    combatant.gauge.current = 18
    assert regenerate_gauge(combatant) == 2
    assert combatant.gauge.current == 20


def test_defeat_state(make_combatant):
    combatant = make_combatant(health=(0, 0, 0, 1))
    assert combatant.is_alive
    combatant.set_matrix(Matrix.zero())
    assert combatant.is_defeated


def test_snapshot(make_combatant):
    snap = make_combatant(health=(1, 2, 3, 4), gauge=7).snapshot()
    assert snap.health == Matrix(1, 2, 3, 4)
    assert snap.gauge == 7


def test_clone_is_independent(make_combatant):
    original = make_combatant("player", kind=CombatantKind.PLAYER)
    original.inventory.add("spark")
    copy = original.clone()

    copy.set_matrix(Matrix.zero())
    copy.inventory.add("spark")

    assert original.matrix == Matrix(2, 2, 2, 2)
    assert original.inventory.count("spark") == 1
    assert copy.inventory.count("spark") == 2


def test_dict_round_trip(make_combatant, f1):
    enemy = make_combatant(spells=[compose_spell([f1])], drops=["spark"])
    enemy.appearance = "enemy.rat"
    assert Combatant.from_dict(enemy.to_dict()) == enemy

    player = make_combatant("player", kind=CombatantKind.PLAYER)
    player.inventory.add("lance", 2)
    assert Combatant.from_dict(player.to_dict()) == player
