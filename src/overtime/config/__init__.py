"""Configuration for Overtime Runner."""

from .settings import (
    GameSettings,
    GeometrySettings,
    Settings,
    SimulatorSettings,
    get_settings,
)

__all__ = [
    "GameSettings",
    "GeometrySettings",
    "Settings",
    "SimulatorSettings",
    "get_settings",
]
