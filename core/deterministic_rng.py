"""Seed owner for the asteroid field's random source."""

from __future__ import annotations

import random
from dataclasses import dataclass, field


@dataclass
class DeterministicRNG:
    """Owns the seeded RNG without touching global random state.

    The stream is seeded with ``seed`` directly so a field built from it
    reproduces the same asteroid sequence for a given seed.
    """

    seed: int
    python_rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.python_rng = random.Random(self.seed)
