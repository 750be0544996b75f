"""The runner avatar: fixed x, a timed jump, and a cosmetic glow."""

import logging
from typing import Callable

from overtime.config import GameSettings, GeometrySettings
from overtime.core.scheduler import Scheduler, Timer
from overtime.game.entities import Box

logger = logging.getLogger(__name__)


class Player:
    """
    Jumping is a fixed window: the avatar is raised to ``jump_y`` for
    ``jump_ms`` and dropped back to the ground. A jump command during the
    window is ignored.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        game: GameSettings,
        geometry: GeometrySettings,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._game = game
        self._geometry = geometry
        self._on_change = on_change
        self.jumping = False
        self.glowing = False
        self._jump_timer: Timer | None = None
        self._glow_timer: Timer | None = None

    @property
    def box(self) -> Box:
        g = self._geometry
        bottom = g.jump_y if self.jumping else g.ground_y
        return Box(g.player_x, bottom, g.player_width, g.player_height)

    def try_jump(self) -> bool:
        """Start a jump. Returns False if one is already in flight."""
        if self.jumping:
            return False
        self.jumping = True
        self._jump_timer = self._scheduler.call_later(self._game.jump_ms, self._land, name="jump")
        self._changed()
        return True

    def glow(self) -> None:
        """Laptop buff. Collecting again restarts the window."""
        if self._glow_timer is not None:
            self._glow_timer.cancel()
        self.glowing = True
        self._glow_timer = self._scheduler.call_later(self._game.glow_ms, self._fade, name="glow")
        self._changed()

    def reset(self) -> None:
        for timer in (self._jump_timer, self._glow_timer):
            if timer is not None:
                timer.cancel()
        self._jump_timer = self._glow_timer = None
        self.jumping = False
        self.glowing = False

    def _land(self) -> None:
        self.jumping = False
        self._jump_timer = None
        self._changed()

    def _fade(self) -> None:
        self.glowing = False
        self._glow_timer = None
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
