"""Spawned obstacles and collectibles, plus the box geometry they collide with."""

from dataclasses import dataclass
from enum import Enum


class EntityKind(Enum):
    OBSTACLE = "obstacle"
    MOON = "moon"
    COFFEE = "coffee"
    LAPTOP = "laptop"
    JASMINE = "jasmine"

    @property
    def is_collectible(self) -> bool:
        return self is not EntityKind.OBSTACLE


class RemovalReason(Enum):
    """Why an entity left play. Exactly one per entity."""
    HIT = "hit"               # touched the player (collision or collection)
    OFF_SCREEN = "off_screen"
    INACTIVE = "inactive"     # run paused at the office, ended or restarted


OBSTACLE_VARIANTS = ("barrier", "stop_sign", "warning", "siren")


@dataclass(frozen=True)
class Box:
    """Axis-aligned box; ``bottom`` grows upward from the ground line."""

    left: float
    bottom: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def top(self) -> float:
        return self.bottom + self.height

    def overlaps(self, other: "Box", margin: float = 0.0) -> bool:
        """
        Strict overlap test. ``margin`` shrinks this box on every side,
        so a grazing touch within the margin does not count.
        """
        return (
            self.left + margin < other.right
            and self.right - margin > other.left
            and self.bottom + margin < other.top
            and self.top - margin > other.bottom
        )


@dataclass
class Entity:
    """
    A moving obstacle or collectible.

    Position is derived from spawn time and velocity rather than
    accumulated, so every pass sees the exact same trajectory.
    """

    id: int
    kind: EntityKind
    spawn_time_ms: float
    spawn_x: float
    bottom: float
    width: float
    height: float
    velocity: float  # px per ms, leftward
    variant: str = ""
    removed: RemovalReason | None = None

    @property
    def alive(self) -> bool:
        return self.removed is None

    def x_at(self, now_ms: float) -> float:
        return self.spawn_x - self.velocity * (now_ms - self.spawn_time_ms)

    def box_at(self, now_ms: float) -> Box:
        return Box(self.x_at(now_ms), self.bottom, self.width, self.height)

    def destroy(self, reason: RemovalReason) -> bool:
        """Mark removed. Returns False if it was already gone."""
        if self.removed is not None:
            return False
        self.removed = reason
        return True
