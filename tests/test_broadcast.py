from __future__ import annotations

import asyncio
import logging
import random

from websockets.exceptions import ConnectionClosedError

from core.field import AsteroidField
from core.frames import AsteroidFrame
from streaming.broadcast import BroadcastScheduler


def _field() -> AsteroidField:
    field = AsteroidField(rng=random.Random(109))
    field.initialize(10)
    return field


def test_scheduler_fires_immediately_and_periodically() -> None:
    frames: list[AsteroidFrame] = []

    async def _publish(frame: AsteroidFrame) -> None:
        frames.append(frame)

    async def _run() -> BroadcastScheduler:
        scheduler = BroadcastScheduler(_field(), _publish, period=0.02)
        scheduler.start()
        await asyncio.sleep(0)
        assert len(frames) == 1
        await asyncio.sleep(0.15)
        await scheduler.stop()
        return scheduler

    scheduler = asyncio.run(_run())

    assert not scheduler.running
    assert scheduler.fired == len(frames)
    assert len(frames) >= 3


def test_each_frame_reflects_one_tick() -> None:
    field = _field()
    reference = AsteroidField(rng=random.Random(109))
    reference.initialize(10)
    frames: list[AsteroidFrame] = []

    async def _publish(frame: AsteroidFrame) -> None:
        frames.append(frame)

    async def _run() -> None:
        scheduler = BroadcastScheduler(field, _publish, period=0.01)
        scheduler.start()
        await asyncio.sleep(0.08)
        await scheduler.stop()

    asyncio.run(_run())

    for frame in frames:
        reference.tick()
        assert frame.asteroids == reference.snapshot().asteroids


def test_failed_push_stops_ticking() -> None:
    field = _field()
    ticks: list[int] = []
    original_tick = field.tick

    def _counting_tick() -> None:
        ticks.append(1)
        original_tick()

    field.tick = _counting_tick  # type: ignore[method-assign]
    attempts: list[AsteroidFrame] = []

    async def _publish(frame: AsteroidFrame) -> None:
        attempts.append(frame)
        if len(attempts) == 3:
            raise ConnectionClosedError(None, None)

    async def _run() -> BroadcastScheduler:
        scheduler = BroadcastScheduler(field, _publish, period=0.01)
        scheduler.start()
        await asyncio.sleep(0.15)
        return scheduler

    scheduler = asyncio.run(_run())

    assert not scheduler.running
    assert len(attempts) == 3
    assert len(ticks) == 3
    assert scheduler.fired == 2


def test_unexpected_publish_error_is_logged_and_stop_stays_quiet(caplog) -> None:
    attempts: list[AsteroidFrame] = []

    async def _publish(frame: AsteroidFrame) -> None:
        attempts.append(frame)
        raise ValueError("Serialized frame exceeds max size")

    async def _run() -> BroadcastScheduler:
        scheduler = BroadcastScheduler(_field(), _publish, period=0.01)
        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()
        return scheduler

    with caplog.at_level(logging.ERROR, logger="streaming.broadcast"):
        scheduler = asyncio.run(_run())

    assert not scheduler.running
    assert len(attempts) == 1
    assert scheduler.fired == 0
    assert "frame could not be published" in caplog.text
    assert "exceeds max size" in caplog.text
