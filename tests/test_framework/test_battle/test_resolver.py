import random

import pytest

from crawler_engine.algebra import Matrix, Operation
from crawler_framework.battle import (
    BattleEvent,
    BattleResolver,
    BattleResult,
    BattleState,
    CastCommand,
    CombatantKind,
    RejectReason,
    WaitCommand,
    arena_slots,
)
from crawler_framework.config import RulesConfig
from crawler_framework.spells import SpellFragment, TargetPattern, compose_spell


@pytest.fixture
def player(make_combatant):
    return make_combatant("player", health=(5, 5, 5, 5), gauge=20, regen=0,
                          kind=CombatantKind.PLAYER)


def resolver_for(player, *enemies, config=None, events=None):
    return BattleResolver(player, enemies, random.Random(0), config=config, events=events)


def test_arena_slots():
    assert arena_slots(5) == [(0, 1), (-1, 1), (1, 1), (0, 2), (-1, 2)]


def test_needs_an_enemy(player):
    with pytest.raises(ValueError):
        resolver_for(player)


def test_worked_example_in_battle(player, make_combatant, f1):
    enemy = make_combatant(health=(2, 2, 2, 2))
    battle = resolver_for(player, enemy)

    outcome = battle.advance(CastCommand(compose_spell([f1]), "enemy"))

    assert outcome.accepted
    assert enemy.matrix == Matrix(1, 2, 2, 2)
    assert outcome.player_action.cost == 4
    assert outcome.player_action.effects[0].before == Matrix(2, 2, 2, 2)
    assert outcome.player_action.effects[0].after == Matrix(1, 2, 2, 2)
    assert player.gauge.current == 16
    assert outcome.enemy_actions[0].waited
    assert outcome.state is BattleState.AWAITING_COMMAND
    assert battle.round == 2


def test_invalid_target_rejected(player, make_combatant, f1):
    battle = resolver_for(player, make_combatant())

    outcome = battle.advance(CastCommand(compose_spell([f1]), "ghost"))

    assert not outcome.accepted
    assert outcome.reject_reason is RejectReason.INVALID_TARGET
    assert battle.round == 1
    assert player.gauge.current == 20


def test_defeated_target_is_invalid_before_range(player, make_combatant, f1):
    # The dead enemy also sits outside the spell's area
    battle = resolver_for(player, make_combatant("a"), make_combatant("b", health=(0, 0, 0, 0)))

    outcome = battle.advance(CastCommand(compose_spell([f1]), "b"))

    assert outcome.reject_reason is RejectReason.INVALID_TARGET


def test_out_of_range_rejected(player, make_combatant, f1):
    left = make_combatant("left")
    battle = resolver_for(player, make_combatant("front"), left)

    assert battle.arena_position("left") == (-1, 1)
    outcome = battle.advance(CastCommand(compose_spell([f1]), "left"))

    assert outcome.reject_reason is RejectReason.OUT_OF_RANGE
    assert left.matrix == Matrix(2, 2, 2, 2)
    assert player.gauge.current == 20


def test_insufficient_gauge_rejected(make_combatant, f1):
    player = make_combatant("player", gauge=3, kind=CombatantKind.PLAYER)
    enemy = make_combatant()
    battle = resolver_for(player, enemy)

    outcome = battle.advance(CastCommand(compose_spell([f1]), "enemy"))

    assert outcome.reject_reason is RejectReason.INSUFFICIENT_GAUGE
    assert outcome.state is BattleState.AWAITING_COMMAND
    assert battle.round == 1
    assert player.gauge.current == 3
    assert enemy.matrix == Matrix(2, 2, 2, 2)


def test_area_spell_hits_every_covered_enemy(player, make_combatant):
    sweep = SpellFragment(
        id="sweep",
        matrix=Matrix(1, 1, 1, 1),
        operation=Operation.SUBTRACT,
        pattern=TargetPattern.of((-1, 1), (0, 1), (1, 1)),
    )
    enemies = [make_combatant(name) for name in ("a", "b", "c", "d")]
    battle = resolver_for(player, *enemies)

    outcome = battle.advance(CastCommand(compose_spell([sweep]), "a"))

    hit = {effect.target_id for effect in outcome.player_action.effects}
    assert hit == {"a", "b", "c"}
    assert enemies[3].matrix == Matrix(2, 2, 2, 2)


def test_self_target_spell(make_combatant):
    mend = SpellFragment(
        id="mend",
        matrix=Matrix.filled(1),
        operation=Operation.ADD,
        pattern=TargetPattern.self_target(),
    )
    player = make_combatant("player", health=(1, 1, 1, 1), kind=CombatantKind.PLAYER)
    enemy = make_combatant()
    battle = resolver_for(player, enemy)

    outcome = battle.advance(CastCommand(compose_spell([mend]), "player"))

    assert outcome.accepted
    assert player.matrix == Matrix(2, 2, 2, 2)
    assert enemy.matrix == Matrix(2, 2, 2, 2)


def test_victory_with_rewards(player, make_combatant, chip, event_bus):
    events = []
    event_bus.subscribe(BattleEvent.FINISHED, events.append, weak=False)
    event_bus.subscribe(BattleEvent.COMBATANT_DEFEATED, events.append, weak=False)

    enemy = make_combatant(health=(1, 1, 1, 1), drops=["lance"])
    battle = resolver_for(player, enemy, events=event_bus)

    outcome = battle.advance(CastCommand(compose_spell([chip]), "enemy"))

    assert outcome.finished
    assert outcome.result is BattleResult.VICTORY
    assert outcome.defeated == ["enemy"]
    assert outcome.rewards.fragments == ["lance"]
    assert [e.type for e in events] == [BattleEvent.COMBATANT_DEFEATED, BattleEvent.FINISHED]

    again = battle.advance(WaitCommand())
    assert not again.accepted
    assert again.reject_reason is RejectReason.BATTLE_FINISHED


def test_defeat(make_combatant, f1):
    player = make_combatant("player", health=(1, 0, 0, 0), kind=CombatantKind.PLAYER)
    enemy = make_combatant(spells=[compose_spell([f1])])
    battle = resolver_for(player, enemy)

    outcome = battle.advance(WaitCommand())

    assert outcome.result is BattleResult.DEFEAT
    assert outcome.rewards is None
    assert outcome.enemy_actions[0].spell_name == "f1"
    assert player.is_defeated


def test_defeat_checked_before_victory(make_combatant, chip):
    # Both sides reach zero in the same round
    player = make_combatant("player", health=(1, 0, 0, 0), kind=CombatantKind.PLAYER)
    backfire = SpellFragment(
        id="backfire",
        matrix=Matrix.filled(1),
        operation=Operation.SUBTRACT,
        pattern=TargetPattern.of((0, 1), includes_self=True),
    )
    enemy = make_combatant(health=(1, 1, 1, 1))
    battle = resolver_for(player, enemy)

    outcome = battle.advance(CastCommand(compose_spell([backfire]), "enemy"))

    assert enemy.is_defeated
    assert outcome.result is BattleResult.DEFEAT


def test_stalemate_at_round_limit(player, make_combatant):
    battle = resolver_for(player, make_combatant(), config=RulesConfig(max_battle_rounds=2))

    first = battle.advance(WaitCommand())
    second = battle.advance(WaitCommand())

    assert not first.finished
    assert second.result is BattleResult.STALEMATE
    assert battle.is_finished


def test_gauge_regenerates_once_per_round(make_combatant, f1):
    player = make_combatant("player", gauge=10, regen=2, kind=CombatantKind.PLAYER)
    player.gauge.maximum = 20
    battle = resolver_for(player, make_combatant(health=(9, 9, 9, 9)))

    battle.advance(CastCommand(compose_spell([f1]), "enemy"))

    assert player.gauge.current == 10 - 4 + 2


def test_positive_damage_finishes_in_bounded_rounds(player, make_combatant, chip):
    enemy = make_combatant(health=(3, 3, 3, 3))
    player.gauge.regen = 7
    battle = resolver_for(player, enemy)
    spell = compose_spell([chip])

    rounds = 0
    while not battle.is_finished and rounds < 10:
        outcome = battle.advance(CastCommand(spell, "enemy"))
        assert outcome.accepted
        rounds += 1

    assert battle.result is BattleResult.VICTORY
    assert rounds == 3


def test_enemy_waits_without_affordable_spell(player, make_combatant, f1):
    enemy = make_combatant(gauge=1, spells=[compose_spell([f1])])
    battle = resolver_for(player, enemy)

    outcome = battle.advance(WaitCommand())

    assert outcome.enemy_actions[0].waited
    assert player.matrix == Matrix(5, 5, 5, 5)


def test_enemy_out_of_reach_waits(player, make_combatant, f1):
    # Second-row enemy: a one-tile spell cannot reach the player
    front = make_combatant("front")
    back = make_combatant("back", spells=[compose_spell([f1])])
    back_row = [make_combatant(f"filler{i}") for i in range(2)]
    battle = resolver_for(player, front, *back_row, back)

    assert battle.arena_position("back") == (0, 2)
    outcome = battle.advance(WaitCommand())

    assert all(action.waited for action in outcome.enemy_actions)


def test_enemy_spell_skips_allies_in_its_area(player, make_combatant):
    spit = SpellFragment(
        id="spit",
        matrix=Matrix(1, 0, 0, 0),
        operation=Operation.SUBTRACT,
        pattern=TargetPattern.of((0, 1), (-1, 2), (0, 2), (1, 2)),
    )
    front = make_combatant("a")
    flanks = [make_combatant(name) for name in ("b", "c")]
    back = make_combatant("back", spells=[compose_spell([spit])])
    battle = resolver_for(player, front, *flanks, back)

    assert battle.arena_position("back") == (0, 2)
    outcome = battle.advance(WaitCommand())

    cast = outcome.enemy_actions[-1]
    assert [effect.target_id for effect in cast.effects] == ["player"]
    assert player.matrix == Matrix(4, 5, 5, 5)
    assert front.matrix == Matrix(2, 2, 2, 2)


def test_custom_picker(player, make_combatant, f1):
    calls = []

    def picker(enemy, target, reaches, rng):
        calls.append(enemy.id)
        return None

    battle = BattleResolver(player, [make_combatant(spells=[compose_spell([f1])])],
                            random.Random(0), picker=picker)
    battle.advance(WaitCommand())

    assert calls == ["enemy"]
    assert player.matrix == Matrix(5, 5, 5, 5)


def test_rejections_publish_events(player, make_combatant, f1, event_bus):
    rejected = []
    event_bus.subscribe(BattleEvent.CAST_REJECTED, rejected.append, weak=False)
    battle = resolver_for(player, make_combatant(), events=event_bus)

    battle.advance(CastCommand(compose_spell([f1]), "ghost"))

    assert rejected[0]["reason"] is RejectReason.INVALID_TARGET
