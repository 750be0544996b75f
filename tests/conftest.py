import os
import random

import pytest

from overtime.config import GameSettings, GeometrySettings
from overtime.core.events import EventBus
from overtime.core.scheduler import Scheduler
from overtime.game.machine import GameStateMachine
from overtime.game.presenter import Presenter


class RecordingPresenter(Presenter):
    """Keeps every outbound call for assertions."""

    def __init__(self):
        super().__init__()
        self.snapshots = []
        self.stages = []
        self.spawned = []
        self.removed = []
        self.sounds = []
        self.ended = []
        self.states = []
        self.prompts = []
        self.player = []

    def on_display_update(self, snapshot):
        self.snapshots.append(snapshot)

    def on_stage_changed(self, stage, label):
        self.stages.append((stage, label))

    def on_entity_spawned(self, entity):
        self.spawned.append(entity)

    def on_entity_removed(self, entity_id, reason):
        self.removed.append((entity_id, reason))

    def on_sound_event(self, sound):
        self.sounds.append(sound)

    def on_run_ended(self, stats, was_overtime):
        self.ended.append((stats, was_overtime))

    def on_state_changed(self, old, new):
        self.states.append((old, new))

    def on_office_reached(self, prompt):
        self.prompts.append(prompt)

    def on_player_changed(self, jumping, invulnerable, glowing):
        self.player.append((jumping, invulnerable, glowing))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("OVERTIME_"):
            monkeypatch.delenv(name)


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def game():
    return GameSettings()


@pytest.fixture
def geometry():
    return GeometrySettings()


@pytest.fixture
def recorder(bus):
    presenter = RecordingPresenter()
    presenter.attach(bus)
    return presenter


@pytest.fixture
def make_machine(bus, scheduler, geometry):
    """Build a machine on the shared bus and scheduler with a seeded rng."""

    def factory(seed=1, **game_overrides):
        game = GameSettings(**game_overrides)
        return GameStateMachine(bus, scheduler, game, geometry, rng=random.Random(seed))

    return factory


@pytest.fixture
def machine(make_machine):
    return make_machine()
