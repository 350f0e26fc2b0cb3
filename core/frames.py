"""Immutable outbound contracts streamed to the ground station."""

from __future__ import annotations

from dataclasses import dataclass

from core.asteroid import Asteroid


@dataclass(frozen=True)
class AsteroidFrame:
    """Point-in-time snapshot of every live asteroid.

    The asteroids are copies owned by the frame; later ticks of the field
    never show through a frame that was already built.
    """

    asteroids: tuple[Asteroid, ...]
    timestamp: int


@dataclass(frozen=True)
class ImageData:
    """Synthetic image chunk for one asteroid plus its pixel offsets."""

    image: bytes
    id: int
    x_offset: int
    y_offset: int
