"""Game core: run state, entities, spawning, collisions and the state machine."""

from overtime.game.entities import Box, Entity, EntityKind, RemovalReason
from overtime.game.machine import GameStateMachine
from overtime.game.presenter import Presenter
from overtime.game.run_state import FinalStats, RunSnapshot, RunState
from overtime.game.sounds import SoundEvent

__all__ = [
    "Box",
    "Entity",
    "EntityKind",
    "FinalStats",
    "GameStateMachine",
    "Presenter",
    "RemovalReason",
    "RunSnapshot",
    "RunState",
    "SoundEvent",
]
