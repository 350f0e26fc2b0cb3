"""Command-line entry points for running and probing the dummy satellite."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
from pathlib import Path
import sys

# Allow `python cli/main.py ...` execution from IDEs by adding repo root to sys.path.
if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from core.config_loader import ConfigValidationError, SatelliteConfig, load_config
from main import build_components
from streaming.client import GroundStationClient

LOGGER = logging.getLogger(__name__)


def _resolve_config(args: argparse.Namespace) -> SatelliteConfig:
    config = load_config(args.config) if args.config else SatelliteConfig()
    overrides = {
        key: value
        for key, value in {
            "host": args.host,
            "port": args.port,
            "seed": args.seed,
            "log_level": args.log_level.upper() if args.log_level else None,
        }.items()
        if value is not None
    }
    return dataclasses.replace(config, **overrides) if overrides else config


def _run(config: SatelliteConfig) -> int:
    server = build_components(config)
    try:
        server.run()
    except OSError as exc:
        LOGGER.error("Cannot bind %s:%d: %s", config.host, config.port, exc)
        return 1
    return 0


async def _probe(endpoint: str, frames: int, image_id: int | None) -> None:
    async with GroundStationClient(endpoint) as client:
        for _ in range(frames):
            frame = await client.receive_frame()
            ids = [asteroid.id for asteroid in frame.asteroids]
            print(f"frame t={frame.timestamp} asteroids={len(ids)} ids={ids}")
        if image_id is not None:
            await client.request_image(image_id)
            image = await client.receive_image()
            print(f"image id={image.id} offsets=({image.x_offset}, {image.y_offset}) bytes={len(image.image)}")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="debris-sat")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Serve one ground station until it disconnects.")
    run_cmd.add_argument("--config", help="YAML or JSON config; defaults are used when omitted.")
    run_cmd.add_argument("--host")
    run_cmd.add_argument("--port", type=int)
    run_cmd.add_argument("--seed", type=int)
    run_cmd.add_argument("--log-level")

    probe_cmd = sub.add_parser("probe", help="Connect as a ground station and print what arrives.")
    probe_cmd.add_argument("--host", default="127.0.0.1")
    probe_cmd.add_argument("--port", type=int, default=32000)
    probe_cmd.add_argument("--frames", type=int, default=3)
    probe_cmd.add_argument("--image-id", type=int)
    return parser


def run_cli(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    if args.command == "run":
        try:
            config = _resolve_config(args)
        except ConfigValidationError as exc:
            logging.basicConfig(level=logging.INFO)
            LOGGER.error("Invalid configuration: %s", exc)
            return 2
        logging.basicConfig(level=config.log_level)
        return _run(config)

    if args.command == "probe":
        logging.basicConfig(level=logging.INFO)
        asyncio.run(_probe(f"ws://{args.host}:{args.port}", args.frames, args.image_id))
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(run_cli())
