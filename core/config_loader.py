"""Top-level config loading and validation for the dummy satellite."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml


class ConfigValidationError(ValueError):
    """Raised when runtime config fails validation."""


# Section -> field -> (expected type, default). Defaults mirror the flight
# software constants the ground tests were written against.
_SECTIONS: dict[str, dict[str, tuple[type[Any], Any]]] = {
    "network": {
        "host": (str, "0.0.0.0"),
        "port": (int, 32000),
    },
    "simulation": {
        "seed": (int, 109),
        "view_width": (float, 1000.0),
        "view_height": (float, 1000.0),
        "max_asteroids": (int, 10),
        "initial_asteroids": (int, 10),
        "spawn_chance": (float, 0.2),
        "mean_size": (float, 20.0),
        "size_stddev": (float, 10.0),
        "max_speed": (float, 3.0),
    },
    "imagery": {
        "chunk_width": (int, 50),
        "chunk_height": (int, 50),
    },
    "broadcast": {
        "period_ms": (int, 1000),
    },
    "logging": {
        "level": (str, "INFO"),
    },
}

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class SatelliteConfig:
    """Validated construction-time parameters for one satellite run."""

    host: str = "0.0.0.0"
    port: int = 32000
    seed: int = 109
    view_width: float = 1000.0
    view_height: float = 1000.0
    max_asteroids: int = 10
    initial_asteroids: int = 10
    spawn_chance: float = 0.2
    mean_size: float = 20.0
    size_stddev: float = 10.0
    max_speed: float = 3.0
    chunk_width: int = 50
    chunk_height: int = 50
    period_ms: int = 1000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ConfigValidationError("network.port must be in [0, 65535]")
        if self.view_width <= 0 or self.view_height <= 0:
            raise ConfigValidationError("simulation.view_width and view_height must be > 0")
        if self.max_asteroids < 0:
            raise ConfigValidationError("simulation.max_asteroids must be >= 0")
        if not 0 <= self.initial_asteroids <= self.max_asteroids:
            raise ConfigValidationError("simulation.initial_asteroids must be in [0, max_asteroids]")
        if not 0.0 <= self.spawn_chance <= 1.0:
            raise ConfigValidationError("simulation.spawn_chance must be in [0.0, 1.0]")
        if self.mean_size <= 0:
            raise ConfigValidationError("simulation.mean_size must be > 0")
        if self.size_stddev < 0:
            raise ConfigValidationError("simulation.size_stddev must be >= 0")
        if self.max_speed < 0:
            raise ConfigValidationError("simulation.max_speed must be >= 0")
        if self.chunk_width <= 0 or self.chunk_height <= 0:
            raise ConfigValidationError("imagery.chunk_width and chunk_height must be > 0")
        if self.period_ms <= 0:
            raise ConfigValidationError("broadcast.period_ms must be > 0")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigValidationError(f"logging.level must be one of {sorted(_LOG_LEVELS)}")

    @property
    def period_seconds(self) -> float:
        return self.period_ms / 1000.0

    def to_dict(self) -> dict[str, Any]:
        """Return the sectioned mapping form accepted by ``build_config``."""
        return {
            "network": {"host": self.host, "port": self.port},
            "simulation": {
                "seed": self.seed,
                "view_width": self.view_width,
                "view_height": self.view_height,
                "max_asteroids": self.max_asteroids,
                "initial_asteroids": self.initial_asteroids,
                "spawn_chance": self.spawn_chance,
                "mean_size": self.mean_size,
                "size_stddev": self.size_stddev,
                "max_speed": self.max_speed,
            },
            "imagery": {"chunk_width": self.chunk_width, "chunk_height": self.chunk_height},
            "broadcast": {"period_ms": self.period_ms},
            "logging": {"level": self.log_level},
        }


def _read_payload(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigValidationError(f"Config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            payload = json.loads(text)
        elif suffix in {".yaml", ".yml"}:
            payload = yaml.safe_load(text)
        else:
            raise ConfigValidationError(f"Unsupported config extension: {suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigValidationError(f"Failed to parse config '{path}': {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ConfigValidationError("Top-level config must be a mapping.")
    return dict(payload)


def _validate_section(section_name: str, section_value: Any) -> dict[str, Any]:
    if not isinstance(section_value, Mapping):
        raise ConfigValidationError(f"Section '{section_name}' must be a mapping.")

    fields = _SECTIONS[section_name]
    section = dict(section_value)
    extras = [key for key in section if key not in fields]
    if extras:
        raise ConfigValidationError(
            f"Section '{section_name}' has unknown field(s): {extras}."
        )

    validated: dict[str, Any] = {}
    for key, (expected_type, default) in fields.items():
        value = section.get(key, default)
        if expected_type is float and type(value) is int:
            value = float(value)
        # Exact match, so bool never passes for int.
        if type(value) is not expected_type:
            raise ConfigValidationError(
                f"Field '{section_name}.{key}' expected {expected_type.__name__}, got {type(value).__name__}."
            )
        validated[key] = value
    return validated


def build_config(payload: Mapping[str, Any]) -> SatelliteConfig:
    """Validate a sectioned mapping and build ``SatelliteConfig``.

    Missing sections and fields take their defaults; unknown ones are errors.
    """
    extras_top = [key for key in payload if key not in _SECTIONS]
    if extras_top:
        raise ConfigValidationError(f"Unknown top-level section(s): {extras_top}.")

    sections = {name: _validate_section(name, payload.get(name, {})) for name in _SECTIONS}
    return SatelliteConfig(
        host=sections["network"]["host"],
        port=sections["network"]["port"],
        seed=sections["simulation"]["seed"],
        view_width=sections["simulation"]["view_width"],
        view_height=sections["simulation"]["view_height"],
        max_asteroids=sections["simulation"]["max_asteroids"],
        initial_asteroids=sections["simulation"]["initial_asteroids"],
        spawn_chance=sections["simulation"]["spawn_chance"],
        mean_size=sections["simulation"]["mean_size"],
        size_stddev=sections["simulation"]["size_stddev"],
        max_speed=sections["simulation"]["max_speed"],
        chunk_width=sections["imagery"]["chunk_width"],
        chunk_height=sections["imagery"]["chunk_height"],
        period_ms=sections["broadcast"]["period_ms"],
        log_level=sections["logging"]["level"].upper(),
    )


def load_config(path: str | Path) -> SatelliteConfig:
    """Load and validate a YAML or JSON satellite configuration file."""
    return build_config(_read_payload(Path(path)))
