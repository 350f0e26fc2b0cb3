"""Dummy satellite runner for local integration testing."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from core.config_loader import SatelliteConfig, load_config
from core.deterministic_rng import DeterministicRNG
from core.field import AsteroidField, Clock
from core.imagery import ImagerySynthesizer
from streaming.websocket_server import DummySatelliteServer


def build_components(config: SatelliteConfig, clock: Clock = time.time) -> DummySatelliteServer:
    """Build a dummy satellite server from configuration."""
    rng = DeterministicRNG(config.seed)
    field = AsteroidField.from_config(config, rng=rng.python_rng, clock=clock)
    synthesizer = ImagerySynthesizer(field, chunk_width=config.chunk_width, chunk_height=config.chunk_height)
    return DummySatelliteServer(
        field=field,
        synthesizer=synthesizer,
        host=config.host,
        port=config.port,
        period=config.period_seconds,
        initial_asteroids=config.initial_asteroids,
    )


def main(config_path: str | Path = "configs/satellite.yaml") -> None:
    """Load config, build components, and serve one ground station."""
    config = load_config(config_path)
    logging.basicConfig(level=config.log_level)
    build_components(config).run()


if __name__ == "__main__":
    main()
