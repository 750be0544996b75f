"""Per-run counters and the read-only views handed to the presentation layer."""

from dataclasses import dataclass, field

from overtime.config import GameSettings


@dataclass
class RunState:
    """
    Everything a run counts. Owned and mutated only by GameStateMachine.

    ``jasmine_collected_per_stage`` records the stages that have already
    produced their one Jasmine (marked when the Jasmine spawns).
    """

    lives: int = 0
    moons: int = 0
    coffee_count: int = 0
    laptop_count: int = 0
    elapsed_seconds: int = 0
    stage: int = 1
    reached_office: bool = False
    overtime_active: bool = False
    jumps_since_office: int = 0
    obstacle_speed_ms: int = 3000
    spawn_rate_ms: int = 2000
    power_up_active: bool = False
    invulnerable: bool = False
    jasmine_collected_per_stage: set[int] = field(default_factory=set)

    @classmethod
    def fresh(cls, game: GameSettings) -> "RunState":
        """Defaults for a new run."""
        return cls(
            lives=game.start_lives,
            obstacle_speed_ms=game.start_obstacle_speed_ms,
            spawn_rate_ms=game.start_spawn_rate_ms,
        )

    def snapshot(self, phase: str) -> "RunSnapshot":
        return RunSnapshot(
            phase=phase,
            lives=self.lives,
            moons=self.moons,
            coffee_count=self.coffee_count,
            laptop_count=self.laptop_count,
            elapsed_seconds=self.elapsed_seconds,
            stage=self.stage,
            reached_office=self.reached_office,
            overtime_active=self.overtime_active,
            jumps_since_office=self.jumps_since_office,
            obstacle_speed_ms=self.obstacle_speed_ms,
            spawn_rate_ms=self.spawn_rate_ms,
            power_up_active=self.power_up_active,
            invulnerable=self.invulnerable,
            jasmine_collected_per_stage=frozenset(self.jasmine_collected_per_stage),
        )


@dataclass(frozen=True)
class RunSnapshot:
    """Immutable copy of RunState plus the phase name, for display."""

    phase: str
    lives: int
    moons: int
    coffee_count: int
    laptop_count: int
    elapsed_seconds: int
    stage: int
    reached_office: bool
    overtime_active: bool
    jumps_since_office: int
    obstacle_speed_ms: int
    spawn_rate_ms: int
    power_up_active: bool
    invulnerable: bool
    jasmine_collected_per_stage: frozenset[int]


@dataclass(frozen=True)
class FinalStats:
    """Numbers shown on the end screen."""

    moons: int
    coffee_count: int
    laptop_count: int
    elapsed_seconds: int
    lives: int
    stage: int
    reached_office: bool
    was_overtime: bool

    @classmethod
    def from_state(cls, state: RunState, was_overtime: bool) -> "FinalStats":
        return cls(
            moons=state.moons,
            coffee_count=state.coffee_count,
            laptop_count=state.laptop_count,
            elapsed_seconds=state.elapsed_seconds,
            lives=state.lives,
            stage=state.stage,
            reached_office=state.reached_office,
            was_overtime=was_overtime,
        )
