import pytest

from overtime.core.state import State
from overtime.game.clock import OFFICE_PROMPT
from overtime.game.entities import EntityKind, RemovalReason
from overtime.game.sounds import SoundEvent


def spawn(machine, kind=EntityKind.OBSTACLE):
    """Put an entity into play as if the spawner had just produced it."""
    rs = machine.run_state
    now = machine.scheduler.now
    if kind is EntityKind.OBSTACLE:
        entity = machine.spawner.build_obstacle(now, rs.obstacle_speed_ms)
    else:
        entity = machine.spawner.build_collectible(now, rs.obstacle_speed_ms, kind)
    machine.collision.add(entity)
    return entity


def quiet_start(machine):
    """Start a run with the collision pass disabled so spawns never touch the player."""
    machine.start()
    machine.collision.stop()


def reach_office(machine):
    for _ in range(90):
        machine.on_tick()


def enter_overtime(machine):
    reach_office(machine)
    machine.jump_command()
    machine.jump_command()


# ----- start / stages / office -----

def test_start_resets_run_state(machine, recorder):
    assert machine.start()

    rs = machine.run_state
    assert machine.state is State.RUNNING
    assert (rs.stage, rs.elapsed_seconds, rs.lives, rs.moons) == (1, 0, 0, 0)
    assert (rs.obstacle_speed_ms, rs.spawn_rate_ms) == (3000, 2000)
    assert machine.clock.running and machine.spawner.running
    assert recorder.stages == [(1, "STREET")]
    assert recorder.snapshots[-1].phase == "RUNNING"


def test_start_refused_mid_run(machine):
    machine.start()
    assert not machine.start()


def test_elapsed_counts_one_per_tick(machine):
    machine.start()
    for expected in range(1, 60):
        machine.on_tick()
        assert machine.run_state.elapsed_seconds == expected


def test_stage_scenario(machine, recorder):
    machine.start()

    for _ in range(30):
        machine.on_tick()
    assert machine.run_state.stage == 2

    for _ in range(30):
        machine.on_tick()
    assert machine.run_state.stage == 3

    for _ in range(30):
        machine.on_tick()
    assert machine.state is State.OFFICE_REACHED
    assert machine.run_state.elapsed_seconds == 90
    assert recorder.stages == [(1, "STREET"), (2, "ENTERING SUBWAY"), (3, "BACK TO STREETS")]


def test_stage_changes_exactly_on_the_second(machine, scheduler):
    quiet_start(machine)

    scheduler.advance(29_999)
    assert machine.run_state.stage == 1
    scheduler.advance(1)
    assert machine.run_state.stage == 2
    scheduler.advance(29_999)
    assert machine.run_state.stage == 2
    scheduler.advance(1)
    assert machine.run_state.stage == 3


def test_office_stops_clock_and_spawner(machine, scheduler, recorder):
    quiet_start(machine)
    scheduler.advance(90_000)

    assert machine.state is State.OFFICE_REACHED
    assert machine.run_state.reached_office
    assert not machine.clock.running
    assert not machine.spawner.running
    assert recorder.prompts == [OFFICE_PROMPT]
    assert recorder.sounds[-1] is SoundEvent.VICTORY

    spawned = len(recorder.spawned)
    scheduler.advance(20_000)
    assert machine.run_state.elapsed_seconds == 90
    assert len(recorder.spawned) == spawned


def test_office_removes_entities_as_inactive(machine, scheduler, recorder):
    machine.start()
    reach_office(machine)
    entity = spawn(machine)

    scheduler.advance(10)

    assert entity.removed is RemovalReason.INACTIVE
    assert (entity.id, RemovalReason.INACTIVE) in recorder.removed


# ----- overtime -----

def test_one_office_jump_is_not_enough(machine):
    machine.start()
    reach_office(machine)

    assert machine.jump_command()

    assert machine.state is State.OFFICE_REACHED
    assert machine.run_state.jumps_since_office == 1


def test_two_office_jumps_start_overtime(machine, recorder):
    machine.start()
    enter_overtime(machine)

    rs = machine.run_state
    assert machine.state is State.OVERTIME
    assert rs.overtime_active
    assert (rs.obstacle_speed_ms, rs.spawn_rate_ms) == (2000, 1500)
    assert machine.spawner.obstacle_period == 1500
    assert machine.spawner.collectible_period == 2000
    assert machine.clock.running
    assert SoundEvent.OVERTIME in recorder.sounds


def test_overtime_ramp_clamps_at_floor(machine, scheduler):
    machine.start()
    enter_overtime(machine)
    machine.collision.stop()

    scheduler.advance(5000)
    rs = machine.run_state
    assert (rs.obstacle_speed_ms, rs.spawn_rate_ms) == (1900, 1400)
    assert machine.spawner.obstacle_period == 1400

    scheduler.advance(5000 * 30)
    assert (rs.obstacle_speed_ms, rs.spawn_rate_ms) == (800, 800)


def test_end_stops_overtime_ramp(machine, scheduler):
    machine.start()
    enter_overtime(machine)
    machine.end()

    speed = machine.run_state.obstacle_speed_ms
    scheduler.advance(60_000)

    assert machine.run_state.obstacle_speed_ms == speed
    assert scheduler.pending() == 0


# ----- jumping -----

def test_jump_window(machine, scheduler, recorder):
    quiet_start(machine)

    assert machine.jump_command()
    assert machine.player.jumping
    assert not machine.jump_command()

    scheduler.advance(599)
    assert machine.player.jumping
    scheduler.advance(1)
    assert not machine.player.jumping
    assert recorder.sounds.count(SoundEvent.JUMP) == 1


def test_jump_in_overtime(machine, scheduler, recorder, geometry):
    machine.start()
    enter_overtime(machine)
    machine.collision.stop()
    start = scheduler.now

    assert machine.jump_command()
    assert machine.player.jumping
    assert machine.player.box.bottom == geometry.jump_y
    assert not machine.jump_command()
    assert machine.state is State.OVERTIME

    scheduler.advance(599)
    assert machine.player.jumping
    scheduler.advance(1)
    assert not machine.player.jumping
    assert scheduler.now - start == 600
    assert recorder.sounds.count(SoundEvent.JUMP) == 1


def test_jump_ignored_when_idle_or_ended(machine):
    assert not machine.jump_command()

    machine.start()
    machine.end()
    assert not machine.jump_command()
    assert machine.state is State.ENDED


# ----- hits and lives -----

def test_hit_with_no_lives_ends_run(machine, recorder):
    machine.start()
    obstacle = spawn(machine)

    assert machine.on_collision(obstacle)

    assert machine.state is State.ENDED
    stats, was_overtime = recorder.ended[-1]
    assert was_overtime is False
    assert machine.last_stats == stats
    assert machine.run_state.lives == 0
    assert SoundEvent.CRASH in recorder.sounds


def test_hit_in_overtime_reports_overtime(machine, recorder):
    machine.start()
    enter_overtime(machine)

    machine.on_collision(spawn(machine))

    assert machine.state is State.ENDED
    assert recorder.ended[-1][1] is True
    assert recorder.ended[-1][0].was_overtime


def test_hit_with_a_life_grants_invulnerability(make_machine, scheduler):
    machine = make_machine(start_lives=1)
    quiet_start(machine)

    machine.on_collision(spawn(machine))
    assert machine.state is State.RUNNING
    assert machine.run_state.lives == 0
    assert machine.run_state.invulnerable

    # Hits while invulnerable do nothing
    machine.on_collision(spawn(machine))
    assert machine.state is State.RUNNING
    assert machine.run_state.lives == 0

    scheduler.advance(1500)
    assert not machine.run_state.invulnerable

    machine.on_collision(spawn(machine))
    assert machine.state is State.ENDED
    assert machine.run_state.lives == 0


def test_collectibles_work_while_invulnerable(make_machine):
    machine = make_machine(start_lives=1)
    quiet_start(machine)
    machine.on_collision(spawn(machine))

    machine.on_collision(spawn(machine, EntityKind.MOON))
    machine.on_collision(spawn(machine, EntityKind.JASMINE))

    assert machine.run_state.moons == 1
    assert machine.run_state.lives == 1


def test_collision_is_idempotent(machine, recorder):
    quiet_start(machine)
    moon = spawn(machine, EntityKind.MOON)

    assert machine.on_collision(moon)
    assert not machine.on_collision(moon)

    assert machine.run_state.moons == 1
    assert recorder.removed.count((moon.id, RemovalReason.HIT)) == 1


def test_collision_outside_active_state_has_no_effect(machine):
    machine.start()
    reach_office(machine)
    moon = spawn(machine, EntityKind.MOON)

    assert not machine.on_collision(moon)
    assert machine.run_state.moons == 0
    assert moon.removed is RemovalReason.INACTIVE


def test_collision_pass_ends_run_on_contact(machine, scheduler):
    machine.start()

    scheduler.advance(10_000)

    assert machine.state is State.ENDED
    assert machine.last_stats.elapsed_seconds < 10


# ----- collectibles and power-up -----

@pytest.mark.parametrize(
    "kind, field, sound",
    [
        (EntityKind.MOON, "moons", SoundEvent.COLLECT),
        (EntityKind.COFFEE, "coffee_count", SoundEvent.COFFEE),
        (EntityKind.LAPTOP, "laptop_count", SoundEvent.LAPTOP),
        (EntityKind.JASMINE, "lives", SoundEvent.JASMINE),
    ],
)
def test_collect_effects(machine, recorder, kind, field, sound):
    quiet_start(machine)
    machine.on_collision(spawn(machine, kind))

    assert getattr(machine.run_state, field) == 1
    assert recorder.sounds[-1] is sound


def test_power_up_is_single_slot(machine, scheduler):
    quiet_start(machine)

    machine.on_collision(spawn(machine, EntityKind.COFFEE))
    assert machine.run_state.obstacle_speed_ms == 1800
    assert machine.run_state.power_up_active

    scheduler.advance(1000)
    machine.on_collision(spawn(machine, EntityKind.COFFEE))
    assert machine.run_state.obstacle_speed_ms == 1800
    assert machine.run_state.coffee_count == 2

    # Window is not extended by the second coffee
    scheduler.advance(2000)
    assert machine.run_state.obstacle_speed_ms == 3000
    assert not machine.run_state.power_up_active


def test_power_up_recreates_spawn_schedules(machine, scheduler):
    quiet_start(machine)
    scheduler.advance(1000)
    before = machine.spawner._obstacle_timer
    assert before.when == 2000

    machine.on_collision(spawn(machine, EntityKind.COFFEE))
    started = machine.spawner._obstacle_timer
    assert started is not before and before.cancelled
    assert started.when == 1000 + machine.run_state.spawn_rate_ms
    assert machine.spawner._collectible_timer.when == 1000 + 2500

    scheduler.advance(3000)
    assert not machine.run_state.power_up_active
    expired = machine.spawner._obstacle_timer
    assert expired is not started and started.cancelled
    assert expired.when == 4000 + machine.run_state.spawn_rate_ms


def test_power_up_restores_exact_value(machine, scheduler):
    machine.start()
    enter_overtime(machine)
    machine.collision.stop()
    scheduler.advance(5000)
    assert machine.run_state.obstacle_speed_ms == 1900

    machine.on_collision(spawn(machine, EntityKind.LAPTOP))
    assert machine.run_state.obstacle_speed_ms == 1140
    assert machine.player.glowing

    scheduler.advance(3000)
    assert machine.run_state.obstacle_speed_ms == 1900
    assert not machine.player.glowing


def test_power_up_keeps_in_flight_velocity(machine):
    quiet_start(machine)
    before = spawn(machine)

    machine.on_collision(spawn(machine, EntityKind.COFFEE))
    after = spawn(machine)

    assert after.velocity > before.velocity
    assert before.velocity == pytest.approx(machine.spawner.velocity_for(3000, before.width))


def test_overtime_cancels_pending_power_up(machine, scheduler):
    quiet_start(machine)
    machine.on_collision(spawn(machine, EntityKind.COFFEE))
    enter_overtime(machine)

    assert not machine.run_state.power_up_active
    scheduler.advance(3000)
    assert machine.run_state.obstacle_speed_ms == 2000


# ----- end / restart -----

def test_end_freezes_state(machine, scheduler, recorder):
    quiet_start(machine)
    scheduler.advance(3000)
    machine.end()

    snapshot = machine.snapshot()
    scheduler.advance(30_000)

    assert machine.snapshot() == snapshot
    assert machine.entities == []
    assert not machine.end()
    assert len(recorder.ended) == 1


def test_restart_clears_stale_timers(machine, scheduler, recorder):
    quiet_start(machine)
    scheduler.advance(4500)
    machine.jump_command()
    machine.on_collision(spawn(machine, EntityKind.COFFEE))
    old = list(machine.entities)
    assert old

    assert machine.restart()

    assert machine.state is State.RUNNING
    assert machine.entities == []
    assert all(e.removed is RemovalReason.INACTIVE for e in old)
    assert machine.run_state.coffee_count == 0
    assert not machine.player.jumping
    # clock + two spawn schedules + collision pass
    assert scheduler.pending() == 4

    scheduler.advance(1000)
    assert machine.run_state.elapsed_seconds == 1


def test_restart_after_end(machine, recorder):
    machine.start()
    machine.on_collision(spawn(machine))
    assert machine.state is State.ENDED

    assert machine.restart()
    assert machine.state is State.RUNNING
    assert machine.last_stats is None
    assert recorder.stages[-1] == (1, "STREET")
