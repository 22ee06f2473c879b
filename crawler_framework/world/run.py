"""
Run controller - exploration, encounters and descent.

A run is one attempt at the dungeon: a seed, the player, the current
level and what the player has done on it. Levels are never mutated;
defeated enemies and collected items are tracked on the RunState.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from crawler_engine.algebra import Matrix
from crawler_engine.core.events import EventBus
from crawler_engine.core.rng import make_rng
from crawler_framework.battle import (
    BattleOutcome,
    BattleResolver,
    BattleResult,
    BattleState,
    Combatant,
    CombatantKind,
    Command,
    RejectReason,
)
from crawler_framework.catalog import GameCatalog
from crawler_framework.components import (
    Direction,
    FragmentInventory,
    GridPosition,
    HealthMatrix,
    SpellGauge,
)
from crawler_framework.config import RulesConfig
from crawler_framework.dungeon import (
    CellKind,
    DungeonGenerator,
    DungeonLevel,
    EnemyPlacement,
    LevelPregenerator,
)
from crawler_framework.spells import (
    CompositionError,
    ConditionalNode,
    Spell,
    compose_from_inventory,
)

logger = logging.getLogger(__name__)

Coord = tuple[int, int]

STARTER_INVENTORY: dict[str, int] = {"spark": 3, "pulse": 2, "mend": 1}
STARTER_SPELLS: dict[str, list[str]] = {"Spark": ["spark"], "Pulse": ["pulse"]}


class RunStatus(Enum):
    EXPLORING = "exploring"
    IN_BATTLE = "in_battle"
    DEAD = "dead"


class RunEvent(Enum):
    """Run events published on the event bus."""
    LEVEL_ENTERED = auto()
    ITEM_PICKED_UP = auto()
    ENCOUNTER_STARTED = auto()
    BATTLE_WON = auto()
    SPELL_COMPOSED = auto()
    RUN_ENDED = auto()


class MoveResult(Enum):
    BLOCKED = auto()
    MOVED = auto()
    PICKED_UP = auto()
    ENCOUNTER = auto()
    DESCENDED = auto()
    UNAVAILABLE = auto()


@dataclass
class MoveOutcome:
    """
    Result of a movement command.

    Attributes:
        result: What happened
        position: Player position afterwards
        fragment_id: Fragment picked up, for PICKED_UP
        enemies: Enemy ids in the battle, for ENCOUNTER
    """
    result: MoveResult
    position: Coord
    fragment_id: Optional[str] = None
    enemies: list[str] = field(default_factory=list)


@dataclass
class RunState:
    """
    Everything needed to resume a run.

    Attributes:
        seed: Run seed
        depth: Current depth
        max_depth: Deepest depth reached (the score)
        player: Player combatant; its position is on the current level
        spells: Composed spells by name
        level: Current level
        defeated: Enemy ids defeated on the current level
        collected: Item coordinates collected on the current level
        steps: Successful moves so far
        battles: Battles started so far (keys battle randomness)
        status: Exploring, in battle or dead
        encounter: Enemy ids of the battle in progress
    """
    seed: int
    depth: int
    max_depth: int
    player: Combatant
    level: DungeonLevel
    spells: dict[str, Spell] = field(default_factory=dict)
    defeated: set[str] = field(default_factory=set)
    collected: set[Coord] = field(default_factory=set)
    steps: int = 0
    battles: int = 0
    status: RunStatus = RunStatus.EXPLORING
    encounter: list[str] = field(default_factory=list)

    @property
    def position(self) -> Coord:
        return self.player.position.coord

    @property
    def score(self) -> int:
        return self.max_depth

    def is_enemy_alive(self, placement: EnemyPlacement) -> bool:
        return placement.id not in self.defeated

    def live_enemies(self) -> list[EnemyPlacement]:
        return [e for e in self.level.enemies if self.is_enemy_alive(e)]

    def to_dict(self) -> dict[str, Any]:
        return {
            'seed': self.seed,
            'depth': self.depth,
            'max_depth': self.max_depth,
            'player': self.player.to_dict(),
            'level': self.level.to_dict(),
            'spells': {name: spell.to_dict() for name, spell in self.spells.items()},
            'defeated': sorted(self.defeated),
            'collected': [list(c) for c in sorted(self.collected)],
            'steps': self.steps,
            'battles': self.battles,
            'status': self.status.value,
            'encounter': list(self.encounter),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunState:
        return cls(
            seed=int(data['seed']),
            depth=int(data['depth']),
            max_depth=int(data['max_depth']),
            player=Combatant.from_dict(data['player']),
            level=DungeonLevel.from_dict(data['level']),
            spells={name: Spell.from_dict(s) for name, s in data.get('spells', {}).items()},
            defeated=set(data.get('defeated', [])),
            collected={tuple(c) for c in data.get('collected', [])},
            steps=int(data.get('steps', 0)),
            battles=int(data.get('battles', 0)),
            status=RunStatus(data['status']),
            encounter=list(data.get('encounter', [])),
        )


def create_player(
    config: RulesConfig,
    position: Coord,
    catalog: GameCatalog,
) -> Combatant:
    """
    Factory for the starting player.

    Starter fragments missing from the catalog are left out.
    """
    inventory = FragmentInventory()
    for fragment_id, count in STARTER_INVENTORY.items():
        if fragment_id in catalog.fragments:
            inventory.add(fragment_id, count)

    return Combatant(
        id="player",
        name="Player",
        kind=CombatantKind.PLAYER,
        health=HealthMatrix(matrix=Matrix.filled(config.player_health)),
        gauge=SpellGauge(
            current=config.player_gauge_max,
            maximum=config.player_gauge_max,
            regen=config.player_gauge_regen,
        ),
        position=GridPosition(x=position[0], y=position[1]),
        inventory=inventory,
        appearance="player",
    )


class DungeonRun:
    """
    Drives one run.

    Usage:
        run = DungeonRun.new(seed=42, catalog=GameCatalog.default())
        outcome = run.move(Direction.RIGHT)
        if outcome.result is MoveResult.ENCOUNTER:
            run.battle_command(CastCommand(run.state.spells["Pulse"], outcome.enemies[0]))
    """

    def __init__(
        self,
        state: RunState,
        catalog: GameCatalog,
        config: Optional[RulesConfig] = None,
        events: Optional[EventBus] = None,
        pregenerate: bool = False,
    ):
        self.state = state
        self.catalog = catalog
        self.config = config or RulesConfig()
        self.events = events
        self.generator = DungeonGenerator(catalog, self.config)
        self.pregen = LevelPregenerator(self.generator) if pregenerate else None
        self.battle: Optional[BattleResolver] = None

        if state.status is RunStatus.IN_BATTLE:
            self._start_battle(state.encounter, count=False)
        self._schedule_next()

    @classmethod
    def new(
        cls,
        seed: int,
        catalog: GameCatalog,
        config: Optional[RulesConfig] = None,
        events: Optional[EventBus] = None,
        pregenerate: bool = False,
    ) -> DungeonRun:
        """Start a run at depth 0 with the starter kit."""
        config = config or RulesConfig()
        level = DungeonGenerator(catalog, config).generate(seed, 0)
        state = RunState(
            seed=seed,
            depth=0,
            max_depth=0,
            player=create_player(config, level.entry, catalog),
            level=level,
        )
        run = cls(state, catalog, config, events, pregenerate)
        for name, fragment_ids in STARTER_SPELLS.items():
            if all(fid in catalog.fragments for fid in fragment_ids):
                run.compose(name, fragment_ids)

        logger.info(f"New run with seed {seed}")
        run._publish(RunEvent.LEVEL_ENTERED, depth=0)
        return run

    @property
    def level(self) -> DungeonLevel:
        return self.state.level

    @property
    def is_over(self) -> bool:
        return self.state.status is RunStatus.DEAD

    def close(self) -> None:
        """Stop background generation."""
        if self.pregen is not None:
            self.pregen.shutdown()

    # Spells

    def compose(
        self,
        name: str,
        fragment_ids: list[str],
        logic: Optional[ConditionalNode] = None,
    ) -> Spell | CompositionError:
        """Compose a spell from owned fragments and keep it under `name`."""
        result = compose_from_inventory(
            self.catalog,
            self.state.player.inventory,
            fragment_ids,
            logic,
            name=name,
            config=self.config,
        )
        if isinstance(result, CompositionError):
            logger.debug(f"Composition of {name!r} failed: {result.kind.name}")
            return result

        self.state.spells[name] = result
        self._publish(RunEvent.SPELL_COMPOSED, name=name, cost=result.cost)
        return result

    def forget(self, name: str) -> bool:
        return self.state.spells.pop(name, None) is not None

    # Exploration

    def move(self, direction: Direction) -> MoveOutcome:
        """
        Step the player one tile.

        Walls and the level edge block. Stepping into a live enemy starts
        a battle instead of moving.
        """
        state = self.state
        if state.status is not RunStatus.EXPLORING:
            return MoveOutcome(MoveResult.UNAVAILABLE, state.position)

        x, y = state.player.position.stepped(direction)
        level = state.level
        if not level.is_walkable(x, y):
            return MoveOutcome(MoveResult.BLOCKED, state.position)

        cell = level.cell(x, y)
        if cell.kind is CellKind.ENEMY_SPAWN:
            placement = level.enemy(cell.payload)
            if placement is not None and state.is_enemy_alive(placement):
                group = self._encounter_group(placement)
                self._start_battle(group)
                return MoveOutcome(MoveResult.ENCOUNTER, state.position, enemies=group)

        state.player.position = GridPosition(x=x, y=y)
        state.steps += 1

        if cell.kind is CellKind.STAIRS:
            self._descend()
            return MoveOutcome(MoveResult.DESCENDED, state.position)

        if cell.kind is CellKind.ITEM and (x, y) not in state.collected and cell.payload:
            if state.player.inventory.add(cell.payload) == 0:
                state.collected.add((x, y))
                self._publish(RunEvent.ITEM_PICKED_UP, fragment=cell.payload)
                return MoveOutcome(MoveResult.PICKED_UP, state.position, fragment_id=cell.payload)
            logger.debug(f"Inventory full, left {cell.payload} on the floor")

        return MoveOutcome(MoveResult.MOVED, state.position)

    def _encounter_group(self, placement: EnemyPlacement) -> list[str]:
        """The bumped enemy plus live enemies within the encounter radius."""
        radius = self.config.encounter_radius
        origin = GridPosition(x=placement.position[0], y=placement.position[1])
        group = [placement.id]
        for other in self.state.live_enemies():
            if other.id == placement.id:
                continue
            position = GridPosition(x=other.position[0], y=other.position[1])
            if origin.chebyshev(position) <= radius:
                group.append(other.id)
        return group

    def _descend(self) -> None:
        state = self.state
        depth = state.depth + 1
        if self.pregen is not None:
            level = self.pregen.take(state.seed, depth)
        else:
            level = self.generator.generate(state.seed, depth)

        state.depth = depth
        state.max_depth = max(state.max_depth, depth)
        state.level = level
        state.defeated.clear()
        state.collected.clear()
        state.player.position = GridPosition(x=level.entry[0], y=level.entry[1])
        state.player.gauge.refill()

        logger.info(f"Descended to depth {depth}")
        self._publish(RunEvent.LEVEL_ENTERED, depth=depth)
        self._schedule_next()

    def _schedule_next(self) -> None:
        if self.pregen is not None and not self.is_over:
            self.pregen.schedule(self.state.seed, self.state.depth + 1)

    # Battle

    def _start_battle(self, enemy_ids: list[str], count: bool = True) -> None:
        state = self.state
        enemies = [
            placement.to_combatant()
            for placement in (state.level.enemy(eid) for eid in enemy_ids)
            if placement is not None
        ]
        if count:
            state.battles += 1
            state.player.gauge.refill()

        state.status = RunStatus.IN_BATTLE
        state.encounter = [e.id for e in enemies]
        rng = make_rng(state.seed, state.depth, "battle", state.battles)
        self.battle = BattleResolver(
            state.player,
            enemies,
            rng,
            config=self.config,
            events=self.events,
        )
        self._publish(RunEvent.ENCOUNTER_STARTED, enemies=list(state.encounter))

    def battle_command(self, command: Command) -> BattleOutcome:
        """Forward a command to the active battle."""
        if self.battle is None:
            return BattleOutcome(
                state=BattleState.FINISHED,
                round=0,
                accepted=False,
                reject_reason=RejectReason.BATTLE_FINISHED,
            )

        outcome = self.battle.advance(command)
        if outcome.finished:
            self._end_battle(outcome)
        return outcome

    def _end_battle(self, outcome: BattleOutcome) -> None:
        state = self.state
        battle = self.battle
        self.battle = None
        state.encounter = []

        for enemy in battle.enemies:
            if enemy.is_defeated:
                state.defeated.add(enemy.id)

        if outcome.result is BattleResult.DEFEAT:
            state.status = RunStatus.DEAD
            logger.info(f"Run over at depth {state.depth}, score {state.score}")
            self._publish(RunEvent.RUN_ENDED, score=state.score, depth=state.depth)
            if self.pregen is not None:
                self.pregen.cancel()
            return

        state.status = RunStatus.EXPLORING
        if outcome.result is BattleResult.VICTORY and outcome.rewards:
            for fragment_id in outcome.rewards.fragments:
                state.player.inventory.add(fragment_id)
            self._publish(RunEvent.BATTLE_WON, rewards=list(outcome.rewards.fragments))

    def _publish(self, event_type: RunEvent, **data) -> None:
        if self.events:
            self.events.publish(event_type, **data)
