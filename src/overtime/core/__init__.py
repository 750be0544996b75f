"""Core framework components for Overtime Runner."""

from .state import State, StateMachine
from .events import EventBus, Event, EventType
from .scheduler import Scheduler, Timer

__all__ = ["State", "StateMachine", "EventBus", "Event", "EventType", "Scheduler", "Timer"]
