"""One-second run clock and the stage timetable."""

import logging
from dataclasses import dataclass
from typing import Callable

from overtime.config import GameSettings
from overtime.core.scheduler import Scheduler, Timer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    number: int
    label: str
    backdrop: str  # "street" or "subway"


STAGES = {
    1: Stage(1, "STREET", "street"),
    2: Stage(2, "ENTERING SUBWAY", "subway"),
    3: Stage(3, "BACK TO STREETS", "street"),
}

OFFICE_PROMPT = "Press JUMP twice for OVERTIME MODE!"


def stage_starting_at(second: int, game: GameSettings) -> Stage | None:
    """The stage that begins exactly at ``second``, if any."""
    if second == game.stage_two_at:
        return STAGES[2]
    if second == game.stage_three_at:
        return STAGES[3]
    return None


class RunClock:
    """Repeating tick that drives elapsed time. Start/stop are idempotent."""

    def __init__(self, scheduler: Scheduler, game: GameSettings, on_tick: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._period = game.tick_ms
        self._on_tick = on_tick
        self._timer: Timer | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        if self._timer is None:
            self._timer = self._scheduler.call_every(self._period, self._on_tick, name="clock")
            logger.debug("Clock started")

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("Clock stopped")
