"""Fixed-interval collision pass over all live entities."""

import logging
from typing import Callable

from overtime.config import GameSettings, GeometrySettings
from overtime.core.scheduler import Scheduler, Timer
from overtime.game.entities import Box, Entity, RemovalReason

logger = logging.getLogger(__name__)


class CollisionChecker:
    """
    Owns the live entity collection.

    Every ``collision_poll_ms`` each entity, in spawn order, ends in exactly
    one of three ways or stays alive for the next pass:

    1. the run is not active: removed as INACTIVE, no effect
    2. it overlaps the player: ``on_hit`` fires, removed as HIT
    3. its right edge is past ``exit_x``: removed as OFF_SCREEN

    Obstacles are tested with ``collision_margin_px`` of forgiveness;
    collectibles with the exact box.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        game: GameSettings,
        geometry: GeometrySettings,
        player_box: Callable[[], Box],
        is_active: Callable[[], bool],
        on_hit: Callable[[Entity], None],
        on_removed: Callable[[Entity], None],
    ) -> None:
        self._scheduler = scheduler
        self._game = game
        self._geometry = geometry
        self._player_box = player_box
        self._is_active = is_active
        self._on_hit = on_hit
        self._on_removed = on_removed
        self._entities: dict[int, Entity] = {}
        self._timer: Timer | None = None

    @property
    def entities(self) -> list[Entity]:
        """Live entities in spawn order."""
        return list(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def add(self, entity: Entity) -> None:
        self._entities[entity.id] = entity

    def start(self) -> None:
        if self._timer is None:
            self._timer = self._scheduler.call_every(
                self._game.collision_poll_ms, self.update, name="collision"
            )

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def update(self) -> None:
        """Run one pass at the scheduler's current time."""
        now = self._scheduler.now
        margin = self._game.collision_margin_px

        for entity in list(self._entities.values()):
            if not entity.alive:
                continue

            if not self._is_active():
                self.remove(entity, RemovalReason.INACTIVE)
                continue

            box = entity.box_at(now)
            forgiveness = 0 if entity.kind.is_collectible else margin
            if self._player_box().overlaps(box, forgiveness):
                # Destroyed before the callback so a repeat collision is a no-op
                if self.remove(entity, RemovalReason.HIT):
                    self._on_hit(entity)
            elif box.right < self._geometry.exit_x:
                self.remove(entity, RemovalReason.OFF_SCREEN)

    def remove(self, entity: Entity, reason: RemovalReason) -> bool:
        """Destroy an entity. Returns False if it was already destroyed."""
        if not entity.destroy(reason):
            return False
        self._entities.pop(entity.id, None)
        logger.debug(f"Entity {entity.id} ({entity.kind.value}) removed: {reason.value}")
        self._on_removed(entity)
        return True

    def clear(self, reason: RemovalReason = RemovalReason.INACTIVE) -> int:
        """Remove every live entity. Returns how many were removed."""
        removed = 0
        for entity in list(self._entities.values()):
            if self.remove(entity, reason):
                removed += 1
        return removed
