"""
Event bus for Overtime Runner.

Carries every outbound notification from the game core to the
presentation layer (display, audio, logging). Handlers run synchronously
in subscription order; queued events are drained by the simulator loop.
"""

from dataclasses import dataclass, field
from typing import Any, Callable
from enum import Enum, auto
import asyncio
import logging
import time
from collections import defaultdict

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Built-in event types."""
    # Run lifecycle
    STATE_CHANGED = auto()
    STAGE_CHANGED = auto()
    OFFICE_REACHED = auto()
    RUN_ENDED = auto()

    # Display
    DISPLAY_UPDATE = auto()
    PLAYER_CHANGED = auto()
    ENTITY_SPAWNED = auto()
    ENTITY_REMOVED = auto()

    # Audio
    SOUND_PLAY = auto()

    # Simulator
    SHUTDOWN = auto()  # Window closed


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: Event type (EventType enum or custom string)
        data: Event payload
        source: Component that emitted the event
        timestamp: Wall-clock time the event was created
    """
    type: EventType | str
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "system"
    timestamp: float = field(default_factory=time.time)


Handler = Callable[[Event], None]


class EventBus:
    """
    Central event bus for component communication.

    Events can be emitted immediately or queued for batch processing.
    A handler that raises is logged and skipped.
    """

    def __init__(self, history_limit: int = 100) -> None:
        self._handlers: dict[EventType | str, list[Handler]] = defaultdict(list)
        self._global_handlers: list[Handler] = []
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._event_history: list[Event] = []
        self._history_limit = history_limit

    def subscribe(
        self,
        event_type: EventType | str,
        handler: Handler
    ) -> Callable[[], None]:
        """
        Subscribe to an event type.

        Args:
            event_type: Type of event to listen for
            handler: Callback function

        Returns:
            Unsubscribe function
        """
        self._handlers[event_type].append(handler)
        logger.debug(f"Handler subscribed to {event_type}")

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Handler unsubscribed from {event_type}")

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """
        Subscribe to all events.

        Returns:
            Unsubscribe function
        """
        self._global_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._global_handlers:
                self._global_handlers.remove(handler)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """Emit an event immediately."""
        self._add_to_history(event)
        self._dispatch(event)

    def publish(self, event_type: EventType | str, source: str = "game", **data: Any) -> None:
        """Shorthand for ``emit(Event(event_type, data=data, source=source))``."""
        self.emit(Event(event_type, data=data, source=source))

    def queue_event(self, event: Event) -> None:
        """Queue an event for later processing."""
        self._queue.put_nowait(event)

    async def process_queue(self) -> None:
        """Process all queued events."""
        while not self._queue.empty():
            event = await self._queue.get()
            self._add_to_history(event)
            self._dispatch(event)
            self._queue.task_done()

    def _dispatch(self, event: Event) -> None:
        handlers = self._handlers.get(event.type, []) + self._global_handlers

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler: {e}")

    def _add_to_history(self, event: Event) -> None:
        """Add event to history, maintaining limit."""
        self._event_history.append(event)
        if len(self._event_history) > self._history_limit:
            self._event_history.pop(0)

    def get_history(
        self,
        event_type: EventType | str | None = None,
        limit: int = 10
    ) -> list[Event]:
        """Get recent events from history."""
        history = self._event_history
        if event_type is not None:
            history = [e for e in history if e.type == event_type]
        return history[-limit:]

    def clear_history(self) -> None:
        """Clear event history."""
        self._event_history.clear()
