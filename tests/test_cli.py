"""Tests for the run/probe command-line flow."""

from __future__ import annotations

import asyncio
import logging
import socket

import pytest

from cli.main import _probe, _resolve_config, build_arg_parser, run_cli
from core.config_loader import SatelliteConfig
from main import build_components


def test_run_defaults_without_config_file() -> None:
    args = build_arg_parser().parse_args(["run"])
    assert _resolve_config(args) == SatelliteConfig()


def test_run_flags_override_config_file(tmp_path) -> None:
    config_path = tmp_path / "sat.yaml"
    config_path.write_text("network:\n  port: 4100\nsimulation:\n  seed: 1\n", encoding="utf-8")
    args = build_arg_parser().parse_args(
        ["run", "--config", str(config_path), "--seed", "99", "--log-level", "warning"]
    )

    config = _resolve_config(args)

    assert config.port == 4100
    assert config.seed == 99
    assert config.log_level == "WARNING"


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args([])


def test_run_reports_bind_failure() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
        holder.bind(("127.0.0.1", 0))
        holder.listen(1)
        port = holder.getsockname()[1]

        assert run_cli(["run", "--host", "127.0.0.1", "--port", str(port)]) == 1


def test_probe_prints_frames_and_image(capsys) -> None:
    async def _scenario() -> None:
        server = build_components(SatelliteConfig(host="127.0.0.1", port=0, period_ms=10))
        await server.start()
        await _probe(f"ws://127.0.0.1:{server.port}", frames=2, image_id=-5)
        await asyncio.wait_for(server.wait_closed(), 2)

    asyncio.run(_scenario())

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("frame t=")
    assert lines[2].startswith("image id=-1 offsets=(0, 0)")


def test_run_rejects_invalid_override(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="cli.main"):
        assert run_cli(["run", "--port", "70000"]) == 2
    assert "network.port" in caplog.text


def test_run_rejects_invalid_config_file(tmp_path) -> None:
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("simulation:\n  spawn_chance: 2.0\n", encoding="utf-8")

    assert run_cli(["run", "--config", str(config_path)]) == 2
    assert run_cli(["run", "--config", str(tmp_path / "missing.yaml")]) == 2
