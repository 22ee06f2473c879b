"""
Battle resolver - turn-based combat controller.

State machine:

    AWAITING_COMMAND -> VALIDATING -> RESOLVING -> CHECK_TERMINAL
          ^                 |                            |
          +---- rejected ---+                            v
          +------------------------------------ (next round | FINISHED)

Each call to advance() drives one player command through the whole
cycle and returns a BattleOutcome describing what happened.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Optional, Union

from crawler_engine.algebra import Matrix
from crawler_engine.core.events import EventBus
from crawler_framework.battle.ai import SpellPicker, random_spell_picker
from crawler_framework.battle.combatant import (
    CastError,
    Combatant,
    regenerate_gauge,
    try_cast,
)
from crawler_framework.config import RulesConfig
from crawler_framework.spells import BattleContext, Spell, trace_effect

logger = logging.getLogger(__name__)


class BattleEvent(Enum):
    """Battle events published on the event bus."""
    STARTED = auto()
    CAST_REJECTED = auto()
    CAST_RESOLVED = auto()
    COMBATANT_DEFEATED = auto()
    ROUND_ENDED = auto()
    FINISHED = auto()


class BattleState(Enum):
    """State of the battle."""
    AWAITING_COMMAND = auto()
    VALIDATING = auto()
    RESOLVING = auto()
    CHECK_TERMINAL = auto()
    FINISHED = auto()


class BattleResult(Enum):
    VICTORY = auto()
    DEFEAT = auto()
    STALEMATE = auto()


class RejectReason(Enum):
    BATTLE_FINISHED = auto()
    INVALID_TARGET = auto()
    OUT_OF_RANGE = auto()
    INSUFFICIENT_GAUGE = auto()


@dataclass(frozen=True)
class CastCommand:
    """Cast `spell` with `target_id` as the chosen target."""
    spell: Spell
    target_id: str


@dataclass(frozen=True)
class WaitCommand:
    """Skip casting this round."""


Command = Union[CastCommand, WaitCommand]


@dataclass(frozen=True)
class EffectReport:
    target_id: str
    before: Matrix
    after: Matrix


@dataclass(frozen=True)
class CastReport:
    """What one combatant did in a round."""
    caster_id: str
    spell_name: Optional[str] = None
    cost: int = 0
    effects: tuple[EffectReport, ...] = ()

    @property
    def waited(self) -> bool:
        return self.spell_name is None


@dataclass
class BattleRewards:
    """Rewards from winning a battle."""
    fragments: list[str] = field(default_factory=list)


@dataclass
class BattleOutcome:
    """
    Result of one advance() call.

    Attributes:
        state: Battle state after the step
        round: Round the command was issued in
        accepted: False when the command was rejected (no turn consumed)
        reject_reason: Why the command was rejected
        player_action: Player's cast (or wait) when accepted
        enemy_actions: Enemy casts/waits this round
        defeated: Combatant ids defeated this round
        result: Final result once FINISHED
        rewards: Drops on victory
    """
    state: BattleState
    round: int
    accepted: bool = True
    reject_reason: Optional[RejectReason] = None
    player_action: Optional[CastReport] = None
    enemy_actions: list[CastReport] = field(default_factory=list)
    defeated: list[str] = field(default_factory=list)
    result: Optional[BattleResult] = None
    rewards: Optional[BattleRewards] = None

    @property
    def finished(self) -> bool:
        return self.state is BattleState.FINISHED


def arena_slots(count: int) -> list[tuple[int, int]]:
    """
    Enemy formation: rows of three in front of the player at (0, 0).

    (0, 1), (-1, 1), (1, 1), (0, 2), (-1, 2), (1, 2), ...
    """
    slots = []
    row = 1
    while len(slots) < count:
        for dx in (0, -1, 1):
            if len(slots) == count:
                break
            slots.append((dx, row))
        row += 1
    return slots


class BattleResolver:
    """
    Turn-based battle controller.

    Manages:
    - Command validation (target, range, gauge)
    - Effect resolution over the spell's area
    - Enemy turns through a spell picker
    - Gauge regeneration once per full round
    - Win/lose conditions
    """

    def __init__(
        self,
        player: Combatant,
        enemies: Iterable[Combatant],
        rng: random.Random,
        config: Optional[RulesConfig] = None,
        events: Optional[EventBus] = None,
        picker: SpellPicker = random_spell_picker,
    ):
        self.player = player
        self.enemies = list(enemies)
        if not self.enemies:
            raise ValueError("A battle needs at least one enemy")

        self.config = config or RulesConfig()
        self.events = events
        self._rng = rng
        self._picker = picker

        self.state = BattleState.AWAITING_COMMAND
        self.result: Optional[BattleResult] = None
        self.round = 1

        # Arena coordinates, independent of dungeon positions
        self._arena: dict[str, tuple[int, int]] = {player.id: (0, 0)}
        for enemy, slot in zip(self.enemies, arena_slots(len(self.enemies))):
            self._arena[enemy.id] = slot

        self._publish(
            BattleEvent.STARTED,
            player=player.id,
            enemies=[e.id for e in self.enemies],
        )

    # Queries

    @property
    def combatants(self) -> list[Combatant]:
        return [self.player, *self.enemies]

    @property
    def living_enemies(self) -> list[Combatant]:
        return [e for e in self.enemies if e.is_alive]

    @property
    def is_finished(self) -> bool:
        return self.state is BattleState.FINISHED

    def get(self, combatant_id: str) -> Optional[Combatant]:
        for combatant in self.combatants:
            if combatant.id == combatant_id:
                return combatant
        return None

    def arena_position(self, combatant_id: str) -> tuple[int, int]:
        return self._arena[combatant_id]

    def context_for(self, caster: Combatant, target: Combatant) -> BattleContext:
        """Snapshot used to evaluate spell predicates."""
        return BattleContext(
            caster=caster.snapshot(),
            target=target.snapshot(),
            turn=self.round,
        )

    def affected_by(self, caster: Combatant, spell: Spell) -> list[Combatant]:
        """
        Living combatants inside the spell's area.

        Offsets are relative to the caster and face the opposing side:
        the player looks toward +y, enemies toward -y. Spells never touch
        the caster's allies; the caster itself is hit only when the pattern
        covers its own tile.
        """
        pattern = spell.pattern
        if pattern.is_self_target:
            return [caster] if caster.is_alive else []

        facing = 1 if caster.is_player else -1
        cx, cy = self._arena[caster.id]
        affected = []
        for combatant in self.combatants:
            if not combatant.is_alive:
                continue
            if combatant is not caster and combatant.is_player == caster.is_player:
                continue
            x, y = self._arena[combatant.id]
            local = ((x - cx) * facing, (y - cy) * facing)
            if pattern.covers(local):
                affected.append(combatant)
        return affected

    def reaches(self, caster: Combatant, spell: Spell, target: Combatant) -> bool:
        return any(c is target for c in self.affected_by(caster, spell))

    # Driving the state machine

    def advance(self, command: Command) -> BattleOutcome:
        """
        Drive one player command through a full round.

        Rejected commands consume no turn and change nothing.
        """
        if self.state is BattleState.FINISHED:
            return self._reject(RejectReason.BATTLE_FINISHED)

        self.state = BattleState.VALIDATING
        outcome = BattleOutcome(state=self.state, round=self.round)

        if isinstance(command, CastCommand):
            target = self.get(command.target_id)
            if target is None or not target.is_alive:
                return self._reject(RejectReason.INVALID_TARGET)
            if not self.reaches(self.player, command.spell, target):
                return self._reject(RejectReason.OUT_OF_RANGE)

            cast = try_cast(self.player, command.spell)
            if cast.error is CastError.INSUFFICIENT_GAUGE:
                return self._reject(RejectReason.INSUFFICIENT_GAUGE)

            self.state = BattleState.RESOLVING
            outcome.player_action = self._resolve(self.player, command.spell, cast.cost)
        else:
            self.state = BattleState.RESOLVING
            outcome.player_action = CastReport(caster_id=self.player.id)

        for enemy in self.enemies:
            if not enemy.is_alive or not self.player.is_alive:
                continue
            outcome.enemy_actions.append(self._enemy_turn(enemy))

        self.state = BattleState.CHECK_TERMINAL
        outcome.defeated = self._collect_defeated(outcome)
        self._check_terminal(outcome)

        outcome.state = self.state
        return outcome

    def _reject(self, reason: RejectReason) -> BattleOutcome:
        if self.state is not BattleState.FINISHED:
            self.state = BattleState.AWAITING_COMMAND
        logger.debug(f"Command rejected: {reason.name}")
        self._publish(BattleEvent.CAST_REJECTED, reason=reason)
        return BattleOutcome(
            state=self.state,
            round=self.round,
            accepted=False,
            reject_reason=reason,
        )

    def _resolve(self, caster: Combatant, spell: Spell, cost: int) -> CastReport:
        """Apply a paid spell to every combatant in its area."""
        effects = []
        for target in self.affected_by(caster, spell):
            context = self.context_for(caster, target)
            trace = trace_effect(target.matrix, spell, context, self.config)
            target.set_matrix(trace.after)
            effects.append(EffectReport(target.id, trace.before, trace.after))

        report = CastReport(
            caster_id=caster.id,
            spell_name=spell.name,
            cost=cost,
            effects=tuple(effects),
        )
        self._publish(BattleEvent.CAST_RESOLVED, report=report)
        return report

    def _enemy_turn(self, enemy: Combatant) -> CastReport:
        spell = self._picker(enemy, self.player, self.reaches, self._rng)
        if spell is None:
            return CastReport(caster_id=enemy.id)

        cast = try_cast(enemy, spell)
        if not cast.success:
            # Picker handed back a spell the enemy cannot pay for
            return CastReport(caster_id=enemy.id)
        return self._resolve(enemy, spell, cast.cost)

    def _collect_defeated(self, outcome: BattleOutcome) -> list[str]:
        touched = set()
        actions = [outcome.player_action, *outcome.enemy_actions]
        for action in actions:
            if action is None:
                continue
            for effect in action.effects:
                if not effect.before.is_zero and effect.after.is_zero:
                    touched.add(effect.target_id)

        defeated = [c.id for c in self.combatants if c.id in touched and c.is_defeated]
        for combatant_id in defeated:
            self._publish(BattleEvent.COMBATANT_DEFEATED, combatant=combatant_id)
        return defeated

    def _check_terminal(self, outcome: BattleOutcome) -> None:
        if self.player.is_defeated:
            self._finish(BattleResult.DEFEAT, outcome)
            return

        if not self.living_enemies:
            self._finish(BattleResult.VICTORY, outcome)
            return

        if self.round >= self.config.max_battle_rounds:
            self._finish(BattleResult.STALEMATE, outcome)
            return

        # Full round done: both sides regenerate once
        for combatant in self.combatants:
            if combatant.is_alive:
                regenerate_gauge(combatant)

        self._publish(BattleEvent.ROUND_ENDED, round=self.round)
        self.round += 1
        self.state = BattleState.AWAITING_COMMAND

    def _finish(self, result: BattleResult, outcome: BattleOutcome) -> None:
        self.state = BattleState.FINISHED
        self.result = result
        outcome.result = result

        if result is BattleResult.VICTORY:
            rewards = BattleRewards()
            for enemy in self.enemies:
                rewards.fragments.extend(enemy.drops)
            outcome.rewards = rewards

        logger.info(f"Battle finished after {self.round} round(s): {result.name}")
        self._publish(BattleEvent.FINISHED, result=result, round=self.round)

    def _publish(self, event_type: BattleEvent, **data) -> None:
        if self.events:
            self.events.publish(event_type, **data)
