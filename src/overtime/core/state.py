"""
State machine for the run lifecycle.

States:
    IDLE: No run yet (start screen)
    RUNNING: Clock, spawner and collisions active (stages 1-3)
    OFFICE_REACHED: Arrived at the office, waiting for overtime jumps
    OVERTIME: Endless mode with ramping difficulty
    ENDED: Run over, final stats frozen for display
"""

from enum import Enum, auto
from typing import Callable
import logging

logger = logging.getLogger(__name__)


class State(Enum):
    """Run phases."""
    IDLE = auto()
    RUNNING = auto()
    OFFICE_REACHED = auto()
    OVERTIME = auto()
    ENDED = auto()


ACTIVE_STATES = frozenset({State.RUNNING, State.OVERTIME})

StateListener = Callable[[State, State], None]


class StateMachine:
    """
    Tracks the current run phase and validates transitions.

    Listeners are notified after every successful transition. A failing
    listener is logged and does not block the others.
    """

    VALID_TRANSITIONS: list[tuple[State, State]] = [
        # From IDLE
        (State.IDLE, State.RUNNING),

        # From RUNNING
        (State.RUNNING, State.OFFICE_REACHED),
        (State.RUNNING, State.ENDED),

        # From OFFICE_REACHED
        (State.OFFICE_REACHED, State.OVERTIME),
        (State.OFFICE_REACHED, State.ENDED),  # Close the run at the office

        # From OVERTIME
        (State.OVERTIME, State.ENDED),

        # From ENDED
        (State.ENDED, State.RUNNING),  # Play again
    ]

    def __init__(self, initial_state: State = State.IDLE) -> None:
        self._state = initial_state
        self._listeners: list[StateListener] = []
        self._valid_transitions = set(self.VALID_TRANSITIONS)
        logger.info(f"StateMachine initialized with state: {initial_state.name}")

    @property
    def state(self) -> State:
        """Get current state."""
        return self._state

    @property
    def is_active(self) -> bool:
        """True while entities move and spawn (RUNNING or OVERTIME)."""
        return self._state in ACTIVE_STATES

    def can_transition(self, to_state: State) -> bool:
        """Check if transition to given state is valid."""
        return (self._state, to_state) in self._valid_transitions

    def transition(self, to_state: State) -> bool:
        """
        Attempt to transition to a new state.

        Returns:
            True if transition successful, False otherwise
        """
        if not self.can_transition(to_state):
            logger.warning(
                f"Invalid transition: {self._state.name} -> {to_state.name}"
            )
            return False

        old_state = self._state
        self._state = to_state
        logger.info(f"State transition: {old_state.name} -> {to_state.name}")
        self._notify(old_state, to_state)
        return True

    def add_listener(self, callback: StateListener) -> None:
        """Add a state change listener."""
        self._listeners.append(callback)

    def remove_listener(self, callback: StateListener) -> None:
        """Remove a state change listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def reset(self) -> None:
        """Force the machine back to IDLE, bypassing the transition table."""
        old_state = self._state
        self._state = State.IDLE
        if old_state is not State.IDLE:
            self._notify(old_state, State.IDLE)
        logger.info("StateMachine reset to IDLE")

    def _notify(self, old_state: State, new_state: State) -> None:
        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception as e:
                logger.error(f"Error in state listener: {e}")
