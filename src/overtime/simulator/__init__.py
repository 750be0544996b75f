"""Ways to run the game: a pygame window or windowless on virtual time."""

from overtime.simulator.headless import Autopilot, HeadlessResult, run_headless

__all__ = ["Autopilot", "HeadlessResult", "run_headless"]
