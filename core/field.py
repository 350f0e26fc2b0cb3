"""Asteroid field: the live debris set driven by the broadcast scheduler."""

from __future__ import annotations

import math
import random
import time
from typing import Callable, TYPE_CHECKING

from core.asteroid import BAD_ASTEROID, Asteroid, Vec2
from core.frames import AsteroidFrame

if TYPE_CHECKING:
    from core.config_loader import SatelliteConfig


Clock = Callable[[], float]


class AsteroidField:
    """Owns the live asteroid set, steps it, culls it and spawns into it.

    The field is not internally synchronized. ``tick`` must only be called
    from one execution context at a time; readers (``snapshot``,
    ``lookup``) must share that context or serialize against it. Every
    value handed out is a copy, so callers never alias live state.
    """

    def __init__(
        self,
        rng: random.Random,
        view_width: float = 1000.0,
        view_height: float = 1000.0,
        max_asteroids: int = 10,
        spawn_chance: float = 0.2,
        mean_size: float = 20.0,
        size_stddev: float = 10.0,
        max_speed: float = 3.0,
        clock: Clock = time.time,
    ) -> None:
        self.rng = rng
        self.view_width = float(view_width)
        self.view_height = float(view_height)
        self.max_asteroids = int(max_asteroids)
        self.spawn_chance = float(spawn_chance)
        self.mean_size = float(mean_size)
        self.size_stddev = float(size_stddev)
        self.max_speed = float(max_speed)
        self.clock = clock

        # Insertion order keeps snapshots reproducible for a given seed.
        self._asteroids: dict[int, Asteroid] = {}
        self._next_id = 0

    @classmethod
    def from_config(cls, config: SatelliteConfig, rng: random.Random, clock: Clock = time.time) -> AsteroidField:
        """Build a field from the ``simulation`` section of a config."""
        return cls(
            rng=rng,
            view_width=config.view_width,
            view_height=config.view_height,
            max_asteroids=config.max_asteroids,
            spawn_chance=config.spawn_chance,
            mean_size=config.mean_size,
            size_stddev=config.size_stddev,
            max_speed=config.max_speed,
            clock=clock,
        )

    def __len__(self) -> int:
        return len(self._asteroids)

    def __contains__(self, asteroid_id: object) -> bool:
        return asteroid_id in self._asteroids

    @property
    def asteroids(self) -> list[Asteroid]:
        """Copies of the live asteroids in spawn order."""
        return [asteroid.copy() for asteroid in self._asteroids.values()]

    # -- Lifecycle ----------------------------------------------------------

    def initialize(self, count: int) -> None:
        """Populate the field with ``count`` freshly spawned asteroids."""
        if count < 0:
            raise ValueError("count must be non-negative")
        if len(self._asteroids) + count > self.max_asteroids:
            raise ValueError(
                f"Cannot add {count} asteroids to a field holding {len(self._asteroids)} "
                f"(max_asteroids={self.max_asteroids})."
            )
        for _ in range(count):
            self._spawn()

    def tick(self) -> None:
        """Step every asteroid, drop the ones that left view, maybe spawn one."""
        for asteroid in self._asteroids.values():
            asteroid.step()

        escaped = [aid for aid, asteroid in self._asteroids.items() if not self.in_view(asteroid.position)]
        for asteroid_id in escaped:
            del self._asteroids[asteroid_id]

        if self.rng.random() < self.spawn_chance and len(self._asteroids) < self.max_asteroids:
            self._spawn()

    def snapshot(self) -> AsteroidFrame:
        """Return a timestamped frame of copied asteroids."""
        return AsteroidFrame(
            asteroids=tuple(asteroid.copy() for asteroid in self._asteroids.values()),
            timestamp=int(self.clock() * 1000),
        )

    def lookup(self, asteroid_id: int) -> Asteroid:
        """Return a copy of a live asteroid, or of ``BAD_ASTEROID`` when absent."""
        asteroid = self._asteroids.get(asteroid_id)
        if asteroid is None:
            return BAD_ASTEROID.copy()
        return asteroid.copy()

    def in_view(self, position: Vec2) -> bool:
        """True when ``position`` lies inside the half-open view rectangle."""
        return 0.0 <= position.x < self.view_width and 0.0 <= position.y < self.view_height

    # -- Spawning -----------------------------------------------------------

    def _spawn(self) -> Asteroid:
        # Draw order is part of the reproducibility contract: point, velocity, size.
        position = self._random_point()
        velocity = self._random_velocity()
        size = self._random_size()
        asteroid = Asteroid(id=self._next_id, position=position, velocity=velocity, size=size)
        self._next_id += 1
        self._asteroids[asteroid.id] = asteroid
        return asteroid

    def _random_point(self) -> Vec2:
        x = self.rng.random() * self.view_width
        y = self.rng.random() * self.view_height
        return Vec2(x, y)

    def _random_velocity(self) -> Vec2:
        # Unit direction on a half-circle in x, mirrored by a random sign in y.
        x = self.rng.random() * 2.0 - 1.0
        y = math.sqrt(1.0 - x * x) * (1.0 if self.rng.random() < 0.5 else -1.0)
        speed = self.max_speed * self.rng.random()
        return Vec2(x * speed, y * speed)

    def _random_size(self) -> float:
        # Half-normal around the mean, always positive for mean_size > 0.
        return self.mean_size + abs(self.rng.gauss(0.0, 1.0)) * self.size_stddev
