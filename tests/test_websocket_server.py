"""End-to-end tests over a real loopback websocket."""

from __future__ import annotations

import asyncio

import pytest
from websockets.exceptions import ConnectionClosed

from core.config_loader import SatelliteConfig
from core.imagery import decode_image
from main import build_components
from streaming.client import GroundStationClient
from streaming.messages import CameraSpec
from streaming.session import SessionState


def _server(**overrides):
    params = {"host": "127.0.0.1", "port": 0, "period_ms": 10_000}
    params.update(overrides)
    return build_components(SatelliteConfig(**params), clock=lambda: 1_700_000_000.0)


def test_frame_then_image_round_trip() -> None:
    async def _scenario():
        server = _server()
        await server.start()
        async with GroundStationClient(f"ws://127.0.0.1:{server.port}") as client:
            frame = await client.receive_frame(timeout=2)
            target = frame.asteroids[0]
            await client.request_image(target.id)
            image = await client.receive_image(timeout=2)
        await asyncio.wait_for(server.wait_closed(), 2)
        return server, frame, target, image

    server, frame, target, image = asyncio.run(_scenario())

    assert frame.timestamp == 1_700_000_000_000
    assert 1 <= len(frame.asteroids) <= 10
    assert image.id == target.id
    assert image.x_offset == int(target.position.x / (target.size / 2))
    assert image.y_offset == int(target.position.y / (target.size / 2))
    assert decode_image(image.image).shape == (50, 50)
    assert server.session.state is SessionState.TERMINATED
    assert not server.scheduler.running
    assert server.scheduler.fired == 1


def test_camera_spec_is_recorded_on_session() -> None:
    async def _scenario():
        server = _server()
        await server.start()
        async with GroundStationClient(f"ws://127.0.0.1:{server.port}") as client:
            await client.receive_frame(timeout=2)
            await client.send_camera_spec(enabled=False, zoom=4.0)
            # Round trip an image so the camera update is known to be processed.
            await client.request_image(0)
            await client.receive_image(timeout=2)
        await asyncio.wait_for(server.wait_closed(), 2)
        return server

    server = asyncio.run(_scenario())

    assert server.session.camera_spec == CameraSpec(enabled=False, zoom=4.0)


def test_undecodable_frame_ends_the_session() -> None:
    async def _scenario():
        server = _server()
        await server.start()
        client = GroundStationClient(f"ws://127.0.0.1:{server.port}")
        await client.connect()
        await client.receive_frame(timeout=2)
        await client.send_raw(b"\x00not a message")
        await asyncio.wait_for(server.wait_closed(), 2)
        with pytest.raises(ConnectionClosed):
            await client.receive(timeout=2)
        await client.close()
        return server

    server = asyncio.run(_scenario())

    assert server.session.terminated
    assert not server.scheduler.running


def test_frames_keep_arriving_at_the_configured_period() -> None:
    async def _scenario():
        server = _server(period_ms=20)
        await server.start()
        async with GroundStationClient(f"ws://127.0.0.1:{server.port}") as client:
            frames = [await client.receive_frame(timeout=2) for _ in range(4)]
        await asyncio.wait_for(server.wait_closed(), 2)
        return server, frames

    server, frames = asyncio.run(_scenario())

    assert len(frames) == 4
    assert server.scheduler.fired >= 4
    assert not server.scheduler.running


def test_listener_stops_accepting_after_first_client() -> None:
    async def _scenario():
        server = _server()
        await server.start()
        async with GroundStationClient(f"ws://127.0.0.1:{server.port}") as client:
            await client.receive_frame(timeout=2)
            with pytest.raises((OSError, ConnectionClosed, asyncio.TimeoutError)):
                late = GroundStationClient(f"ws://127.0.0.1:{server.port}")
                await asyncio.wait_for(late.connect(), 2)
                await late.receive(timeout=2)
        await asyncio.wait_for(server.wait_closed(), 2)

    asyncio.run(_scenario())


def test_stop_drops_active_session() -> None:
    async def _scenario():
        server = _server()
        await server.start()
        client = GroundStationClient(f"ws://127.0.0.1:{server.port}")
        await client.connect()
        await client.receive_frame(timeout=2)
        await asyncio.wait_for(server.stop(), 2)
        await client.close()
        return server

    server = asyncio.run(_scenario())

    assert server.session.terminated
    assert not server.scheduler.running
