"""Session protocol handler for the single ground-station connection."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK

from core.field import AsteroidField
from core.imagery import ImagerySynthesizer
from streaming.messages import CameraSpec, ImageRequest, Message, UnknownMessage
from streaming.state_serializer import MessageDecodeError, decode_message, serialize_message

LOGGER = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    """Protocol states for one connection."""

    AWAITING_MESSAGE = "awaiting_message"
    TERMINATED = "terminated"


class SessionTerminatedError(RuntimeError):
    """Raised when a write is attempted on a terminated session."""


class SatelliteSession:
    """Reads requests off one connection and writes responses and frames to it.

    ``connection`` is anything with awaitable ``recv()`` and ``send(data)``;
    in production it is a websockets server connection. Outbound writes from
    the receive loop and the broadcast scheduler go through ``send`` and are
    serialized so each message is written as one unit.
    """

    def __init__(self, connection: Any, field: AsteroidField, synthesizer: ImagerySynthesizer) -> None:
        self.connection = connection
        self.field = field
        self.synthesizer = synthesizer
        self.camera_spec: CameraSpec | None = None
        self._state = SessionState.AWAITING_MESSAGE
        self._send_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def terminated(self) -> bool:
        return self._state is SessionState.TERMINATED

    def terminate(self) -> None:
        self._state = SessionState.TERMINATED

    async def send(self, message: Any) -> None:
        """Encode and write one outbound message atomically."""
        if self.terminated:
            raise SessionTerminatedError("Session is terminated; refusing to write.")
        data = serialize_message(message)
        async with self._send_lock:
            await self.connection.send(data)

    async def receive_loop(self) -> None:
        """Block on inbound frames and dispatch them until the session ends.

        A clean close ends the loop quietly; transport and decode failures
        are logged. Either way the session ends TERMINATED and nothing is
        raised to the caller.
        """
        try:
            while not self.terminated:
                raw = await self.connection.recv()
                await self.dispatch(decode_message(raw))
        except ConnectionClosedOK:
            LOGGER.info("Ground station closed the connection.")
        except ConnectionClosed as exc:
            LOGGER.warning("Connection lost: %s", exc)
        except MessageDecodeError as exc:
            LOGGER.error("Dropping session after undecodable frame: %s", exc)
        except OSError as exc:
            LOGGER.error("Transport failure: %s", exc)
        finally:
            self.terminate()

    async def dispatch(self, message: Message) -> None:
        """Handle one decoded inbound message."""
        LOGGER.info("Sat received %s", message)
        if isinstance(message, CameraSpec):
            # Stored for later use; the dummy camera has nothing to configure.
            self.camera_spec = message
        elif isinstance(message, ImageRequest):
            await self.send(self.synthesizer.synthesize(message.id))
        else:
            kind = message.kind if isinstance(message, UnknownMessage) else type(message).__name__
            LOGGER.warning("Ignoring unhandled message kind: %s", kind)
