"""
Game settings using Pydantic.

Settings are loaded from environment variables with .env file support.
Nested sections can be overridden with a double underscore, e.g.
``OVERTIME_GAME__START_LIVES=2``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GameSettings(BaseSettings):
    """Rule constants for a run. All durations are milliseconds."""

    model_config = SettingsConfigDict(env_prefix="OVERTIME_GAME_", extra="ignore")

    # Clock and stages
    tick_ms: int = Field(default=1000, gt=0)
    stage_two_at: int = 30
    stage_three_at: int = 60
    office_at: int = 90

    # Difficulty
    start_obstacle_speed_ms: int = Field(default=3000, gt=0)
    start_spawn_rate_ms: int = Field(default=2000, gt=0)
    collectible_offset_ms: int = Field(default=500, ge=0)

    # Overtime
    office_jumps_for_overtime: int = Field(default=2, ge=1)
    overtime_obstacle_speed_ms: int = Field(default=2000, gt=0)
    overtime_spawn_rate_ms: int = Field(default=1500, gt=0)
    overtime_ramp_ms: int = Field(default=5000, gt=0)
    overtime_ramp_step_ms: int = Field(default=100, ge=0)
    overtime_floor_ms: int = Field(default=800, gt=0)

    # Player timing
    jump_ms: int = Field(default=600, gt=0)
    invulnerable_ms: int = Field(default=1500, gt=0)
    power_up_ms: int = Field(default=3000, gt=0)
    power_up_factor: float = Field(default=0.6, gt=0.0)
    glow_ms: int = Field(default=3000, gt=0)

    # Collision
    collision_poll_ms: int = Field(default=10, gt=0)
    collision_margin_px: int = Field(default=10, ge=0)

    # Collectible kind thresholds (uniform draw in [0, 1))
    jasmine_chance: float = Field(default=0.15, ge=0.0, le=1.0)
    moon_below: float = Field(default=0.50, ge=0.0, le=1.0)
    coffee_below: float = Field(default=0.75, ge=0.0, le=1.0)

    start_lives: int = Field(default=0, ge=0)
    seed: int | None = None

    @model_validator(mode="after")
    def check_thresholds_ordered(self) -> "GameSettings":
        if not self.jasmine_chance <= self.moon_below <= self.coffee_below:
            raise ValueError(
                "collectible thresholds must satisfy "
                f"jasmine_chance ({self.jasmine_chance}) <= moon_below ({self.moon_below}) "
                f"<= coffee_below ({self.coffee_below})"
            )
        return self


class GeometrySettings(BaseSettings):
    """Playfield geometry in pixels, y measured up from the bottom edge."""

    model_config = SettingsConfigDict(env_prefix="OVERTIME_GEOMETRY_", extra="ignore")

    viewport_width: int = 800
    viewport_height: int = 400

    player_x: int = 100
    player_width: int = 50
    player_height: int = 50
    ground_y: int = 140
    jump_y: int = 280

    obstacle_width: int = 40
    obstacle_height: int = 40
    collectible_size: int = 30
    collectible_min_y: int = 180
    collectible_max_y: int = 280

    exit_x: int = -100  # entity is gone once its right edge passes this


class SimulatorSettings(BaseSettings):
    """Desktop simulator window."""

    model_config = SettingsConfigDict(env_prefix="OVERTIME_SIMULATOR_", extra="ignore")

    width: int = 960
    height: int = 540
    title: str = "Overtime Runner"
    fullscreen: bool = False
    fps: int = 60
    sound: bool = True


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="OVERTIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: Literal["simulator", "headless"] = "simulator"
    debug: bool = False

    # Headless runs stop after this much virtual time
    headless_max_seconds: int = Field(default=180, gt=0)

    game: GameSettings = Field(default_factory=GameSettings)
    geometry: GeometrySettings = Field(default_factory=GeometrySettings)
    simulator: SimulatorSettings = Field(default_factory=SimulatorSettings)

    @property
    def is_simulator(self) -> bool:
        """Check if running with a window."""
        return self.env == "simulator"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
