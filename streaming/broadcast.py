"""Fixed-rate tick-and-broadcast loop for one session."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from websockets.exceptions import ConnectionClosed

from core.field import AsteroidField
from core.frames import AsteroidFrame
from streaming.session import SessionTerminatedError

LOGGER = logging.getLogger(__name__)

Publisher = Callable[[AsteroidFrame], Awaitable[None]]


class BroadcastScheduler:
    """Ticks the field and publishes a snapshot once per period.

    The first firing happens immediately on ``start``. Firings are scheduled
    against fixed deadlines, so a slow publish shortens the following sleep
    instead of drifting the schedule. A failed publish stops the scheduler
    for good; the field is never ticked into a dead session.
    """

    def __init__(self, field: AsteroidField, publish: Publisher, period: float = 1.0) -> None:
        if period <= 0:
            raise ValueError("period must be > 0")
        self.field = field
        self.publish = publish
        self.period = float(period)
        self.fired = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start firing on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="asteroid-iteration")

    async def stop(self) -> None:
        """Cancel the timer and wait for it to wind down."""
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            self.field.tick()
            frame = self.field.snapshot()
            try:
                await self.publish(frame)
            except (ConnectionClosed, SessionTerminatedError, OSError) as exc:
                LOGGER.warning("Stopping asteroid broadcast after failed push: %s", exc)
                return
            except Exception:
                LOGGER.exception("Stopping asteroid broadcast: frame could not be published.")
                return
            self.fired += 1
            deadline += self.period
            await asyncio.sleep(max(0.0, deadline - loop.time()))
