"""Async ground-station client for exercising a running dummy satellite."""

from __future__ import annotations

import asyncio
from typing import Any

import websockets

from core.frames import AsteroidFrame, ImageData
from streaming.messages import CameraSpec, ImageRequest, Message
from streaming.state_serializer import decode_message, serialize_message


class GroundStationClient:
    """Minimal client speaking the satellite's framed protocol.

    Frames and image responses share one connection, so ``receive_frame``
    and ``receive_image`` set aside messages of the other kind instead of
    dropping them.
    """

    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint
        self._ws: Any = None
        self._pending: list[Message] = []

    async def __aenter__(self) -> GroundStationClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        self._ws = await websockets.connect(self.endpoint)

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def send(self, message: Any) -> None:
        await self._ws.send(serialize_message(message))

    async def send_raw(self, data: bytes | str) -> None:
        """Write an arbitrary frame; used to probe error handling."""
        await self._ws.send(data)

    async def request_image(self, asteroid_id: int) -> None:
        await self.send(ImageRequest(id=asteroid_id))

    async def send_camera_spec(self, enabled: bool = True, zoom: float = 1.0) -> None:
        await self.send(CameraSpec(enabled=enabled, zoom=zoom))

    async def receive(self, timeout: float | None = None) -> Message:
        """Return the next message, pending ones first."""
        if self._pending:
            return self._pending.pop(0)
        raw = await asyncio.wait_for(self._ws.recv(), timeout=timeout)
        return decode_message(raw)

    async def receive_frame(self, timeout: float | None = None) -> AsteroidFrame:
        return await self._receive_kind(AsteroidFrame, timeout)

    async def receive_image(self, timeout: float | None = None) -> ImageData:
        return await self._receive_kind(ImageData, timeout)

    async def _receive_kind(self, kind: type[Any], timeout: float | None) -> Any:
        for index, message in enumerate(self._pending):
            if isinstance(message, kind):
                return self._pending.pop(index)
        while True:
            raw = await asyncio.wait_for(self._ws.recv(), timeout=timeout)
            message = decode_message(raw)
            if isinstance(message, kind):
                return message
            self._pending.append(message)
