"""Base class for anything that shows a run: window, audio, logs, tests."""

import logging
from typing import Callable

from overtime.core.events import Event, EventBus, EventType
from overtime.game.entities import Entity, RemovalReason
from overtime.game.run_state import FinalStats, RunSnapshot
from overtime.game.sounds import SoundEvent

logger = logging.getLogger(__name__)


class Presenter:
    """
    Override the hooks you care about, then ``attach`` to the bus.

    Hooks are fire-and-forget; an exception in one is logged by the bus
    and never reaches the game.
    """

    def __init__(self) -> None:
        self._unsubscribers: list[Callable[[], None]] = []

    def attach(self, bus: EventBus) -> None:
        routes = {
            EventType.DISPLAY_UPDATE: lambda e: self.on_display_update(e.data["snapshot"]),
            EventType.STAGE_CHANGED: lambda e: self.on_stage_changed(e.data["stage"], e.data["label"]),
            EventType.ENTITY_SPAWNED: lambda e: self.on_entity_spawned(e.data["entity"]),
            EventType.ENTITY_REMOVED: lambda e: self.on_entity_removed(e.data["entity_id"], e.data["reason"]),
            EventType.SOUND_PLAY: lambda e: self.on_sound_event(e.data["sound"]),
            EventType.RUN_ENDED: lambda e: self.on_run_ended(e.data["stats"], e.data["was_overtime"]),
            EventType.STATE_CHANGED: lambda e: self.on_state_changed(e.data["old"], e.data["new"]),
            EventType.OFFICE_REACHED: lambda e: self.on_office_reached(e.data["prompt"]),
            EventType.PLAYER_CHANGED: self._route_player,
        }
        for event_type, handler in routes.items():
            self._unsubscribers.append(bus.subscribe(event_type, handler))
        logger.debug(f"{type(self).__name__} attached")

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _route_player(self, event: Event) -> None:
        self.on_player_changed(
            event.data["jumping"], event.data["invulnerable"], event.data["glowing"]
        )

    # Hooks

    def on_display_update(self, snapshot: RunSnapshot) -> None:
        pass

    def on_stage_changed(self, stage: int, label: str) -> None:
        pass

    def on_entity_spawned(self, entity: Entity) -> None:
        pass

    def on_entity_removed(self, entity_id: int, reason: RemovalReason) -> None:
        pass

    def on_sound_event(self, sound: SoundEvent) -> None:
        pass

    def on_run_ended(self, stats: FinalStats, was_overtime: bool) -> None:
        pass

    def on_state_changed(self, old: str, new: str) -> None:
        pass

    def on_office_reached(self, prompt: str) -> None:
        pass

    def on_player_changed(self, jumping: bool, invulnerable: bool, glowing: bool) -> None:
        pass
