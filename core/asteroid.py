"""Simulated debris unit tracked by the dummy satellite."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec2:
    """Immutable 2D vector used for positions and velocities."""

    x: float
    y: float

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def magnitude(self) -> float:
        return (self.x * self.x + self.y * self.y) ** 0.5


@dataclass
class Asteroid:
    """One piece of debris with a stable id and a straight-line trajectory.

    ``position`` is the only field that changes after creation. Ids are
    handed out by the owning field and are never reused.
    """

    id: int
    position: Vec2
    velocity: Vec2
    size: float

    def step(self) -> None:
        """Advance one tick along the velocity vector. No bounds checks."""
        self.position = self.position + self.velocity

    def copy(self) -> Asteroid:
        """Return an independent duplicate safe to hand to another owner."""
        return dataclasses.replace(self)


# Stand-in for image requests naming an asteroid that is not live.
BAD_ASTEROID = Asteroid(id=-1, position=Vec2(0.0, 0.0), velocity=Vec2(0.0, 0.0), size=1.0)
