import logging

from overtime.config import Settings
from overtime.core.events import EventType
from overtime.simulator.window import SimulatorWindow


def test_cleanup_announces_shutdown_and_releases_log_handler(machine, bus):
    root = logging.getLogger()
    before = list(root.handlers)
    window = SimulatorWindow(Settings(), machine)
    assert len(root.handlers) == len(before) + 1

    window._cleanup()

    assert root.handlers == before
    shutdown = bus.get_history(EventType.SHUTDOWN)
    assert len(shutdown) == 1
    assert shutdown[0].source == "simulator"


def test_window_stops_listening_after_cleanup(machine):
    window = SimulatorWindow(Settings(), machine)
    window._cleanup()

    machine.start()

    assert window._snapshot.phase == "IDLE"
