"""
Windowless runs on virtual time.

A tiny autopilot plays the game so a whole run (stages, office, overtime)
can be exercised from the command line or a test in well under a second.
"""

import logging
from dataclasses import dataclass

from overtime.config import GeometrySettings, Settings
from overtime.core.events import EventBus
from overtime.core.scheduler import Scheduler
from overtime.core.state import State
from overtime.game.entities import EntityKind
from overtime.game.machine import GameStateMachine
from overtime.game.presenter import Presenter
from overtime.game.run_state import FinalStats, RunSnapshot

logger = logging.getLogger(__name__)


class RunLogPresenter(Presenter):
    """Writes the run's milestones to the log."""

    def on_stage_changed(self, stage: int, label: str) -> None:
        logger.info(f"[stage {stage}] {label}")

    def on_office_reached(self, prompt: str) -> None:
        logger.info(f"[office] {prompt}")

    def on_run_ended(self, stats: FinalStats, was_overtime: bool) -> None:
        title = "Overtime Ended!" if was_overtime else "Mission Complete!"
        logger.info(
            f"[end] {title} time={stats.elapsed_seconds}s moons={stats.moons} "
            f"coffee={stats.coffee_count} laptops={stats.laptop_count}"
        )


class Autopilot:
    """
    Jumps when the nearest obstacle is about to reach the player, and taps
    jump twice once the office has been on screen for ``office_wait_ms``.
    """

    def __init__(
        self,
        machine: GameStateMachine,
        geometry: GeometrySettings,
        lead_ms: float = 60.0,
        office_wait_ms: float = 1000.0,
    ) -> None:
        self.machine = machine
        self._geometry = geometry
        self._lead_ms = lead_ms
        self._office_wait_ms = office_wait_ms
        self._office_since: float | None = None
        self.jumps = 0

    def update(self) -> None:
        now = self.machine.scheduler.now

        if self.machine.state is State.OFFICE_REACHED:
            if self._office_since is None:
                self._office_since = now
            elif now - self._office_since >= self._office_wait_ms:
                self._press()
            return
        self._office_since = None

        if not self.machine.states.is_active or self.machine.player.jumping:
            return

        g = self._geometry
        player_right = g.player_x + g.player_width
        for entity in self.machine.entities:
            if entity.kind is not EntityKind.OBSTACLE:
                continue
            box = entity.box_at(now)
            gap = box.left - player_right
            if box.right > g.player_x and gap <= entity.velocity * self._lead_ms:
                self._press()
                return

    def _press(self) -> None:
        if self.machine.jump_command():
            self.jumps += 1


@dataclass(frozen=True)
class HeadlessResult:
    snapshot: RunSnapshot
    stats: FinalStats | None
    simulated_ms: float
    jumps: int

    @property
    def ended(self) -> bool:
        return self.stats is not None


def run_headless(
    settings: Settings,
    seed: int | None = None,
    max_seconds: int | None = None,
) -> HeadlessResult:
    """Play one run with the autopilot until it ends or the time limit hits."""
    game = settings.game
    if seed is not None:
        game = game.model_copy(update={"seed": seed})
    limit_ms = (max_seconds or settings.headless_max_seconds) * 1000

    bus = EventBus()
    scheduler = Scheduler()
    machine = GameStateMachine(bus, scheduler, game, settings.geometry)
    RunLogPresenter().attach(bus)
    pilot = Autopilot(machine, settings.geometry)

    logger.info(f"Headless run (seed={game.seed}, limit={limit_ms / 1000:.0f}s)")
    machine.start()
    step = game.collision_poll_ms
    while scheduler.now < limit_ms and machine.state is not State.ENDED:
        scheduler.advance(step)
        pilot.update()

    if machine.state is not State.ENDED:
        logger.info(f"Time limit reached in {machine.state.name}")

    return HeadlessResult(
        snapshot=machine.snapshot(),
        stats=machine.last_stats,
        simulated_ms=scheduler.now,
        jumps=pilot.jumps,
    )
