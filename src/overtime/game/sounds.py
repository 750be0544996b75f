"""Sound cues the core asks the presentation layer to play."""

from enum import Enum


class SoundEvent(Enum):
    JUMP = "jump"
    COLLECT = "collect"
    COFFEE = "coffee"
    LAPTOP = "laptop"
    JASMINE = "jasmine"
    CRASH = "crash"
    VICTORY = "victory"
    OVERTIME = "overtime"
