"""
Main entry point for Overtime Runner.

Reads OVERTIME_ENV to pick between the pygame window and a windowless
autopilot run on virtual time.
"""

import asyncio
import logging
import sys

from overtime.config import Settings, get_settings
from overtime.core.events import EventBus
from overtime.core.scheduler import Scheduler
from overtime.game.machine import GameStateMachine


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


async def run_simulator(settings: Settings) -> None:
    """Run the windowed version."""
    from overtime.audio import get_audio_engine
    from overtime.simulator.window import SimulatorWindow

    # Create shared components
    event_bus = EventBus()
    machine = GameStateMachine(
        event_bus=event_bus,
        scheduler=Scheduler(),
        game=settings.game,
        geometry=settings.geometry,
    )

    audio = None
    if settings.simulator.sound:
        audio = get_audio_engine()
        audio.init()

    window = SimulatorWindow(settings=settings, machine=machine, audio=audio)
    await window.run()


def run_headless_once(settings: Settings) -> None:
    """Play one autopilot run and log the outcome."""
    from overtime.simulator.headless import run_headless

    logger = logging.getLogger(__name__)
    result = run_headless(settings)
    logger.info(
        f"Headless run finished in {result.simulated_ms / 1000:.1f}s virtual time "
        f"({result.jumps} jumps, phase {result.snapshot.phase})"
    )


def main() -> None:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()
    settings = get_settings()

    setup_logging(settings.debug)

    logger = logging.getLogger(__name__)
    logger.info("Overtime Runner starting...")

    try:
        if settings.is_simulator:
            logger.info("Running in simulator mode")
            asyncio.run(run_simulator(settings))
        else:
            logger.info("Running headless")
            run_headless_once(settings)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("Overtime Runner stopped")


if __name__ == "__main__":
    main()
