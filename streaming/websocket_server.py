"""Single-client websocket listener for the dummy satellite."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import websockets

from core.field import AsteroidField
from core.imagery import ImagerySynthesizer
from streaming.broadcast import BroadcastScheduler
from streaming.session import SatelliteSession

LOGGER = logging.getLogger(__name__)

# Close code sent to clients arriving after the session slot is taken.
TRY_AGAIN_LATER = 1013


class DummySatelliteServer:
    """Accept one ground station, then tick, broadcast and answer requests.

    Only one connection is ever served. Once it is accepted the listening
    socket is closed (the accepted connection stays open), and the server is
    finished when that session ends.
    """

    def __init__(
        self,
        field: AsteroidField,
        synthesizer: ImagerySynthesizer,
        host: str = "0.0.0.0",
        port: int = 32000,
        period: float = 1.0,
        initial_asteroids: int = 10,
    ) -> None:
        self.field = field
        self.synthesizer = synthesizer
        self.host = host
        self.port = port
        self.period = period
        self.initial_asteroids = initial_asteroids
        self.session: SatelliteSession | None = None
        self.scheduler: BroadcastScheduler | None = None
        self._server: Any = None

    async def start(self) -> None:
        """Bind the listening endpoint. Raises ``OSError`` when binding fails."""
        self._server = await websockets.serve(self._handler, self.host, self.port)
        # Resolve an ephemeral port request to the port actually bound.
        self.port = int(next(iter(self._server.sockets)).getsockname()[1])
        LOGGER.info("Dummy satellite listening on %s:%d", self.host, self.port)

    async def wait_closed(self) -> None:
        """Wait until the listener is closed and the session handler returned."""
        if self._server is not None:
            await self._server.wait_closed()

    async def stop(self) -> None:
        """Stop listening and drop any active session."""
        if self.session is not None and not self.session.terminated:
            await self.session.connection.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def serve(self) -> None:
        """Bind, serve the single session, and return when it ends."""
        await self.start()
        await self.wait_closed()

    def run(self) -> None:
        """Blocking entry point used by the CLI."""
        asyncio.run(self.serve())

    async def _handler(self, connection: Any) -> None:
        if self.session is not None:
            LOGGER.warning("Rejecting %s: a ground station is already connected.", connection.remote_address)
            await connection.close(code=TRY_AGAIN_LATER, reason="single session only")
            return

        # One-shot accept: stop listening but keep this connection.
        self._server.close(close_connections=False)
        LOGGER.info("Ground station connected from %s", connection.remote_address)

        session = SatelliteSession(connection, self.field, self.synthesizer)
        self.session = session
        self.field.initialize(self.initial_asteroids)

        scheduler = BroadcastScheduler(self.field, session.send, period=self.period)
        self.scheduler = scheduler
        scheduler.start()
        try:
            await session.receive_loop()
        finally:
            # Scheduler first so nothing writes into a closing transport.
            try:
                await scheduler.stop()
            finally:
                session.terminate()
                await connection.close()
                LOGGER.info("Session ended after %d broadcast(s).", scheduler.fired)
