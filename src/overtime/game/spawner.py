"""Obstacle and collectible spawn schedules."""

import logging
import random
from typing import AbstractSet, Callable

from overtime.config import GameSettings, GeometrySettings
from overtime.core.scheduler import Scheduler, Timer
from overtime.game.entities import OBSTACLE_VARIANTS, Entity, EntityKind

logger = logging.getLogger(__name__)


def choose_collectible_kind(
    r: float,
    stage: int,
    jasmine_stages: AbstractSet[int],
    game: GameSettings,
) -> EntityKind:
    """
    Map a uniform draw ``r`` in [0, 1) to a collectible kind.

    Jasmine takes the low end of the range only while the current stage
    has not produced one yet; otherwise that slice falls through to Moon.
    """
    if stage not in jasmine_stages and r < game.jasmine_chance:
        return EntityKind.JASMINE
    if r < game.moon_below:
        return EntityKind.MOON
    if r < game.coffee_below:
        return EntityKind.COFFEE
    return EntityKind.LAPTOP


class Spawner:
    """
    Two independent repeating schedules. The owner decides what to do on
    each firing; the spawner only keeps time and builds entities.

    ``start`` / ``reschedule`` take the current spawn rate: obstacles fire
    every ``rate`` ms, collectibles every ``rate + collectible_offset_ms``.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        game: GameSettings,
        geometry: GeometrySettings,
        rng: random.Random,
        on_obstacle_due: Callable[[], None],
        on_collectible_due: Callable[[], None],
    ) -> None:
        self._scheduler = scheduler
        self._game = game
        self._geometry = geometry
        self.rng = rng
        self._on_obstacle_due = on_obstacle_due
        self._on_collectible_due = on_collectible_due
        self._obstacle_timer: Timer | None = None
        self._collectible_timer: Timer | None = None
        self._next_id = 1

    @property
    def running(self) -> bool:
        return self._obstacle_timer is not None

    @property
    def obstacle_period(self) -> float | None:
        return self._obstacle_timer.period if self._obstacle_timer else None

    @property
    def collectible_period(self) -> float | None:
        return self._collectible_timer.period if self._collectible_timer else None

    def start(self, spawn_rate_ms: int) -> None:
        self.stop()
        self._obstacle_timer = self._scheduler.call_every(
            spawn_rate_ms, self._on_obstacle_due, name="spawn-obstacle"
        )
        self._collectible_timer = self._scheduler.call_every(
            spawn_rate_ms + self._game.collectible_offset_ms,
            self._on_collectible_due,
            name="spawn-collectible",
        )
        logger.debug(f"Spawner started at {spawn_rate_ms} ms")

    def stop(self) -> None:
        for timer in (self._obstacle_timer, self._collectible_timer):
            if timer is not None:
                timer.cancel()
        self._obstacle_timer = self._collectible_timer = None

    def reschedule(self, spawn_rate_ms: int) -> None:
        """Tear down and recreate both schedules, only if currently running."""
        if self.running:
            self.start(spawn_rate_ms)

    def draw(self) -> float:
        return self.rng.random()

    def velocity_for(self, obstacle_speed_ms: int, width: float) -> float:
        """Speed that carries an entity from spawn to the exit line in ``obstacle_speed_ms``."""
        g = self._geometry
        distance = g.viewport_width + width - g.exit_x
        return distance / obstacle_speed_ms

    def build_obstacle(self, now_ms: float, obstacle_speed_ms: int) -> Entity:
        g = self._geometry
        return self._build(
            EntityKind.OBSTACLE,
            now_ms,
            obstacle_speed_ms,
            bottom=g.ground_y,
            width=g.obstacle_width,
            height=g.obstacle_height,
            variant=self.rng.choice(OBSTACLE_VARIANTS),
        )

    def build_collectible(self, now_ms: float, obstacle_speed_ms: int, kind: EntityKind) -> Entity:
        g = self._geometry
        return self._build(
            kind,
            now_ms,
            obstacle_speed_ms,
            bottom=self.rng.uniform(g.collectible_min_y, g.collectible_max_y),
            width=g.collectible_size,
            height=g.collectible_size,
        )

    def _build(
        self,
        kind: EntityKind,
        now_ms: float,
        obstacle_speed_ms: int,
        bottom: float,
        width: float,
        height: float,
        variant: str = "",
    ) -> Entity:
        entity = Entity(
            id=self._next_id,
            kind=kind,
            spawn_time_ms=now_ms,
            spawn_x=float(self._geometry.viewport_width),
            bottom=bottom,
            width=width,
            height=height,
            velocity=self.velocity_for(obstacle_speed_ms, width),
            variant=variant,
        )
        self._next_id += 1
        return entity
