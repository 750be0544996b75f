"""
Virtual-time timer scheduler.

All game timing (clock ticks, spawns, collision passes, power-up and
invulnerability windows) runs as callbacks on one Scheduler. Time only
moves when ``advance()`` is called, so the simulator feeds it frame deltas
and tests feed it exact milliseconds.

Ordering: callbacks fire in due-time order, ties broken by registration
order. A recurring timer keeps its original registration order for every
firing. Cancelling a timer guarantees none of its pending firings run.
"""

from dataclasses import dataclass, field
from typing import Callable
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Timer:
    """Handle for a scheduled callback."""

    when: float
    seq: int
    callback: Callable[[], None]
    period: float | None = None
    name: str = ""
    cancelled: bool = field(default=False)

    @property
    def recurring(self) -> bool:
        return self.period is not None

    def cancel(self) -> None:
        """Stop this timer. Safe to call more than once."""
        self.cancelled = True


class Scheduler:
    """Single-threaded timer queue driven by explicit time advancement."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, Timer]] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    def call_later(
        self,
        delay_ms: float,
        callback: Callable[[], None],
        name: str = ""
    ) -> Timer:
        """Run ``callback`` once after ``delay_ms``."""
        if delay_ms < 0:
            raise ValueError(f"delay must be >= 0, got {delay_ms}")
        timer = Timer(self._now + delay_ms, next(self._seq), callback, name=name)
        self._push(timer)
        return timer

    def call_every(
        self,
        period_ms: float,
        callback: Callable[[], None],
        name: str = "",
        first_delay_ms: float | None = None
    ) -> Timer:
        """Run ``callback`` every ``period_ms``, first after ``first_delay_ms`` (default one period)."""
        if period_ms <= 0:
            raise ValueError(f"period must be > 0, got {period_ms}")
        delay = period_ms if first_delay_ms is None else first_delay_ms
        timer = Timer(self._now + delay, next(self._seq), callback, period=period_ms, name=name)
        self._push(timer)
        return timer

    def advance(self, delta_ms: float) -> int:
        """
        Move time forward, firing every timer that falls due.

        Exceptions raised by callbacks propagate to the caller; the clock is
        left at the due time of the failing timer.

        Returns:
            Number of callbacks fired
        """
        if delta_ms < 0:
            raise ValueError(f"cannot move time backwards ({delta_ms} ms)")
        target = self._now + delta_ms
        fired = 0

        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = when
            if timer.recurring:
                # Re-arm before running so the callback may cancel it
                timer.when = when + timer.period
                self._push(timer)
            timer.callback()
            fired += 1

        self._now = target
        return fired

    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def clear(self) -> None:
        """Cancel every timer."""
        for _, _, timer in self._queue:
            timer.cancel()
        self._queue.clear()
        logger.debug("Scheduler cleared")

    def _push(self, timer: Timer) -> None:
        heapq.heappush(self._queue, (timer.when, timer.seq, timer))
