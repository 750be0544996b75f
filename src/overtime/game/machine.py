"""
Game state machine for a run.

Owns the single RunState and every run timer. Clock, spawner and the
collision pass only call back into this class; nothing else mutates the
counters. All outbound notifications go through the EventBus.

Phases:
    IDLE -> RUNNING -> OFFICE_REACHED -> OVERTIME -> ENDED
    RUNNING -> ENDED, OFFICE_REACHED -> ENDED, ENDED -> RUNNING (restart)
"""

import logging
import random
from typing import Any

from overtime.config import GameSettings, GeometrySettings
from overtime.core.events import EventBus, EventType
from overtime.core.scheduler import Scheduler, Timer
from overtime.core.state import State, StateMachine
from overtime.game.clock import OFFICE_PROMPT, STAGES, RunClock, Stage, stage_starting_at
from overtime.game.collision import CollisionChecker
from overtime.game.entities import Entity, EntityKind, RemovalReason
from overtime.game.player import Player
from overtime.game.run_state import FinalStats, RunSnapshot, RunState
from overtime.game.sounds import SoundEvent
from overtime.game.spawner import Spawner, choose_collectible_kind

logger = logging.getLogger(__name__)


class GameStateMachine:
    """Runs one game at a time on an injected scheduler."""

    def __init__(
        self,
        event_bus: EventBus | None = None,
        scheduler: Scheduler | None = None,
        game: GameSettings | None = None,
        geometry: GeometrySettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.event_bus = event_bus or EventBus()
        self.scheduler = scheduler or Scheduler()
        self._game = game or GameSettings()
        self._geometry = geometry or GeometrySettings()
        self.rng = rng or random.Random(self._game.seed)

        self.states = StateMachine()
        self.states.add_listener(self._on_state_changed)
        self.run_state = RunState.fresh(self._game)
        self.last_stats: FinalStats | None = None

        self.player = Player(self.scheduler, self._game, self._geometry, on_change=self._publish_player)
        self.clock = RunClock(self.scheduler, self._game, self.on_tick)
        self.spawner = Spawner(
            self.scheduler,
            self._game,
            self._geometry,
            self.rng,
            on_obstacle_due=self._spawn_obstacle,
            on_collectible_due=self._spawn_collectible,
        )
        self.collision = CollisionChecker(
            self.scheduler,
            self._game,
            self._geometry,
            player_box=lambda: self.player.box,
            is_active=lambda: self.states.is_active,
            on_hit=self._apply_collision,
            on_removed=self._publish_removed,
        )

        self._ramp_timer: Timer | None = None
        self._power_up_timer: Timer | None = None
        self._invulnerable_timer: Timer | None = None
        self._speed_before_power_up: int | None = None

    # ----- Queries -----

    @property
    def state(self) -> State:
        return self.states.state

    @property
    def entities(self) -> list[Entity]:
        return self.collision.entities

    def snapshot(self) -> RunSnapshot:
        return self.run_state.snapshot(self.state.name)

    # ----- Inbound commands -----

    def start(self) -> bool:
        """Begin a fresh run from IDLE or ENDED."""
        if self.state not in (State.IDLE, State.ENDED):
            logger.debug(f"start() ignored while {self.state.name}")
            return False

        self._teardown()
        self.run_state = RunState.fresh(self._game)
        self.last_stats = None
        self.states.transition(State.RUNNING)
        logger.info("Run started")

        self._publish_stage(STAGES[1])
        self.clock.start()
        self.spawner.start(self.run_state.spawn_rate_ms)
        self.collision.start()
        self._publish_display()
        return True

    def restart(self) -> bool:
        """Throw away whatever is running and start over."""
        logger.info(f"Restart requested from {self.state.name}")
        self._teardown()
        if self.state is not State.IDLE:
            self.states.reset()
        return self.start()

    def jump_command(self) -> bool:
        """
        Jump input. At the office it counts towards overtime; while running
        it starts a jump. Returns True if the command had any effect.
        """
        state = self.state
        rs = self.run_state

        if state is State.OFFICE_REACHED:
            rs.jumps_since_office += 1
            logger.debug(f"Office jump {rs.jumps_since_office}/{self._game.office_jumps_for_overtime}")
            self._publish_display()
            if rs.jumps_since_office >= self._game.office_jumps_for_overtime:
                self._start_overtime()
            return True

        if self.states.is_active:
            if self.player.try_jump():
                self._play(SoundEvent.JUMP)
                return True
            return False

        logger.debug(f"Jump ignored while {state.name}")
        return False

    def end(self, was_overtime: bool | None = None) -> bool:
        """
        Finish the run and freeze its state for display.

        ``was_overtime`` defaults to whether overtime is currently active.
        """
        if self.state not in (State.RUNNING, State.OFFICE_REACHED, State.OVERTIME):
            logger.debug(f"end() ignored while {self.state.name}")
            return False
        if was_overtime is None:
            was_overtime = self.run_state.overtime_active

        self._cancel_run_timers()
        self.states.transition(State.ENDED)
        self.collision.clear(RemovalReason.INACTIVE)

        stats = FinalStats.from_state(self.run_state, was_overtime)
        self.last_stats = stats
        logger.info(
            f"Run ended (overtime={was_overtime}): {stats.elapsed_seconds}s, "
            f"moons={stats.moons} coffee={stats.coffee_count} laptops={stats.laptop_count}"
        )
        self._publish_display()
        self._publish(EventType.RUN_ENDED, stats=stats, was_overtime=was_overtime)
        return True

    # ----- Clock -----

    def on_tick(self) -> None:
        rs = self.run_state
        rs.elapsed_seconds += 1

        stage = stage_starting_at(rs.elapsed_seconds, self._game)
        if stage is not None and stage.number == rs.stage + 1:
            rs.stage = stage.number
            logger.info(f"Stage {stage.number}: {stage.label}")
            self._publish_stage(stage)

        self._publish_display()

        if rs.elapsed_seconds == self._game.office_at and not rs.reached_office:
            self._reach_office()

    def _reach_office(self) -> None:
        rs = self.run_state
        rs.reached_office = True
        self.clock.stop()
        self.spawner.stop()
        self.states.transition(State.OFFICE_REACHED)
        logger.info(f"Office reached at {rs.elapsed_seconds}s")
        self._play(SoundEvent.VICTORY)
        self._publish(EventType.OFFICE_REACHED, prompt=OFFICE_PROMPT)

    def _start_overtime(self) -> None:
        rs = self.run_state
        # Overtime resets speeds, so a pending power-up has nothing to restore
        self._cancel_power_up()

        rs.overtime_active = True
        rs.jumps_since_office = 0
        rs.obstacle_speed_ms = self._game.overtime_obstacle_speed_ms
        rs.spawn_rate_ms = self._game.overtime_spawn_rate_ms
        self.states.transition(State.OVERTIME)
        logger.info("OVERTIME!")
        self._play(SoundEvent.OVERTIME)

        self.spawner.start(rs.spawn_rate_ms)
        self.clock.start()
        self._ramp_timer = self.scheduler.call_every(
            self._game.overtime_ramp_ms, self._ramp_difficulty, name="overtime-ramp"
        )
        self._publish_display()

    def _ramp_difficulty(self) -> None:
        if self.state is not State.OVERTIME:
            self._cancel(self._ramp_timer)
            self._ramp_timer = None
            return
        rs = self.run_state
        floor = self._game.overtime_floor_ms
        step = self._game.overtime_ramp_step_ms
        rs.obstacle_speed_ms = max(floor, rs.obstacle_speed_ms - step)
        rs.spawn_rate_ms = max(floor, rs.spawn_rate_ms - step)
        logger.debug(f"Overtime ramp: speed={rs.obstacle_speed_ms} rate={rs.spawn_rate_ms}")
        self.spawner.reschedule(rs.spawn_rate_ms)
        self._publish_display()

    # ----- Spawning -----

    def _spawn_obstacle(self) -> None:
        if not self.states.is_active:
            return
        entity = self.spawner.build_obstacle(self.scheduler.now, self.run_state.obstacle_speed_ms)
        self._add_entity(entity)

    def _spawn_collectible(self) -> None:
        if not self.states.is_active:
            return
        rs = self.run_state
        kind = choose_collectible_kind(
            self.spawner.draw(), rs.stage, rs.jasmine_collected_per_stage, self._game
        )
        if kind is EntityKind.JASMINE:
            rs.jasmine_collected_per_stage.add(rs.stage)
        entity = self.spawner.build_collectible(self.scheduler.now, rs.obstacle_speed_ms, kind)
        self._add_entity(entity)

    def _add_entity(self, entity: Entity) -> None:
        self.collision.add(entity)
        logger.debug(f"Spawned {entity.kind.value} #{entity.id}")
        self._publish(EventType.ENTITY_SPAWNED, entity=entity)

    # ----- Collisions -----

    def on_collision(self, entity: Entity) -> bool:
        """
        Resolve a player/entity contact. A second call for the same entity,
        or a call outside an active phase, does nothing.
        """
        if not self.states.is_active:
            self.collision.remove(entity, RemovalReason.INACTIVE)
            return False
        if not self.collision.remove(entity, RemovalReason.HIT):
            return False
        self._apply_collision(entity)
        return True

    def _apply_collision(self, entity: Entity) -> None:
        if entity.kind is EntityKind.OBSTACLE:
            self._hit_obstacle()
        else:
            self._collect(entity.kind)

    def _hit_obstacle(self) -> None:
        rs = self.run_state
        if rs.invulnerable:
            logger.debug("Hit ignored (invulnerable)")
            return

        self._play(SoundEvent.CRASH)
        if rs.lives > 0:
            rs.lives -= 1
            logger.info(f"Hit! Lives: {rs.lives}")
            self._grant_invulnerability()
            self._publish_display()
        else:
            self.end(was_overtime=rs.overtime_active)

    def _grant_invulnerability(self) -> None:
        self.run_state.invulnerable = True
        self._cancel(self._invulnerable_timer)
        self._invulnerable_timer = self.scheduler.call_later(
            self._game.invulnerable_ms, self._end_invulnerability, name="invulnerable"
        )
        self._publish_player()

    def _end_invulnerability(self) -> None:
        self.run_state.invulnerable = False
        self._invulnerable_timer = None
        self._publish_player()
        self._publish_display()

    def _collect(self, kind: EntityKind) -> None:
        rs = self.run_state
        if kind is EntityKind.MOON:
            rs.moons += 1
            self._play(SoundEvent.COLLECT)
        elif kind is EntityKind.COFFEE:
            rs.coffee_count += 1
            self._play(SoundEvent.COFFEE)
            self._activate_power_up()
        elif kind is EntityKind.LAPTOP:
            rs.laptop_count += 1
            self._play(SoundEvent.LAPTOP)
            self._activate_power_up()
            self.player.glow()
        elif kind is EntityKind.JASMINE:
            rs.lives += 1
            self._play(SoundEvent.JASMINE)
            logger.info(f"Jasmine! Lives: {rs.lives}")
        self._publish_display()

    # ----- Power-up -----

    def _activate_power_up(self) -> bool:
        rs = self.run_state
        if rs.power_up_active:
            return False
        self._speed_before_power_up = rs.obstacle_speed_ms
        rs.obstacle_speed_ms = max(1, int(round(rs.obstacle_speed_ms * self._game.power_up_factor)))
        rs.power_up_active = True
        self._power_up_timer = self.scheduler.call_later(
            self._game.power_up_ms, self._expire_power_up, name="power-up"
        )
        logger.debug(f"Power-up: speed {self._speed_before_power_up} -> {rs.obstacle_speed_ms}")
        self.spawner.reschedule(rs.spawn_rate_ms)
        return True

    def _expire_power_up(self) -> None:
        rs = self.run_state
        if self._speed_before_power_up is not None:
            rs.obstacle_speed_ms = self._speed_before_power_up
        rs.power_up_active = False
        self._speed_before_power_up = None
        self._power_up_timer = None
        logger.debug(f"Power-up expired: speed back to {rs.obstacle_speed_ms}")
        self.spawner.reschedule(rs.spawn_rate_ms)
        self._publish_display()

    def _cancel_power_up(self) -> None:
        self._cancel(self._power_up_timer)
        self._power_up_timer = None
        self._speed_before_power_up = None
        self.run_state.power_up_active = False

    # ----- Teardown -----

    def _cancel_run_timers(self) -> None:
        self.clock.stop()
        self.spawner.stop()
        self.collision.stop()
        for timer in (self._ramp_timer, self._power_up_timer, self._invulnerable_timer):
            self._cancel(timer)
        self._ramp_timer = self._power_up_timer = self._invulnerable_timer = None
        self.player.reset()

    def _teardown(self) -> None:
        self._cancel_run_timers()
        self._speed_before_power_up = None
        self.collision.clear(RemovalReason.INACTIVE)

    @staticmethod
    def _cancel(timer: Timer | None) -> None:
        if timer is not None:
            timer.cancel()

    # ----- Outbound -----

    def _publish(self, event_type: EventType, **data: Any) -> None:
        self.event_bus.publish(event_type, source="game", **data)

    def _publish_display(self) -> None:
        self._publish(EventType.DISPLAY_UPDATE, snapshot=self.snapshot())

    def _publish_stage(self, stage: Stage) -> None:
        self._publish(EventType.STAGE_CHANGED, stage=stage.number, label=stage.label)

    def _publish_player(self) -> None:
        self._publish(
            EventType.PLAYER_CHANGED,
            jumping=self.player.jumping,
            invulnerable=self.run_state.invulnerable,
            glowing=self.player.glowing,
        )

    def _publish_removed(self, entity: Entity) -> None:
        self._publish(EventType.ENTITY_REMOVED, entity_id=entity.id, reason=entity.removed)

    def _play(self, sound: SoundEvent) -> None:
        self._publish(EventType.SOUND_PLAY, sound=sound)

    def _on_state_changed(self, old: State, new: State) -> None:
        self._publish(EventType.STATE_CHANGED, old=old.name, new=new.name)
