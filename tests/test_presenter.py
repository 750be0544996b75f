from overtime.game.entities import RemovalReason
from overtime.game.sounds import SoundEvent


def test_routes_events_to_hooks(machine, recorder):
    machine.start()
    machine.jump_command()

    assert recorder.states == [("IDLE", "RUNNING")]
    assert recorder.sounds == [SoundEvent.JUMP]
    assert recorder.player[-1] == (True, False, False)
    assert recorder.snapshots


def test_detach_stops_delivery(machine, recorder):
    recorder.detach()
    machine.start()
    assert recorder.states == []


def test_broken_presenter_does_not_reach_the_game(machine, bus, recorder):
    class Broken(type(recorder)):
        def on_display_update(self, snapshot):
            raise RuntimeError("display gone")

    Broken().attach(bus)

    assert machine.start()
    machine.end()
    assert recorder.ended


def test_removed_reason_reported(machine, recorder):
    machine.start()
    entity = machine.spawner.build_obstacle(0, 3000)
    machine.collision.add(entity)
    machine.end()

    assert recorder.removed == [(entity.id, RemovalReason.INACTIVE)]
