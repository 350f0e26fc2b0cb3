"""Framed-message codec: tagged, deterministic JSON frames."""

from __future__ import annotations

import base64
import dataclasses
import json
from typing import Any, Callable, Mapping

from core.asteroid import Asteroid, Vec2
from core.frames import AsteroidFrame, ImageData
from streaming.messages import (
    KIND_ASTEROID_FRAME,
    KIND_CAMERA_SPEC,
    KIND_IMAGE_DATA,
    KIND_IMAGE_REQUEST,
    MESSAGE_KINDS,
    CameraSpec,
    ImageRequest,
    Message,
    UnknownMessage,
)


MAX_FRAME_BYTES = 10 * 1024 * 1024


class MessageDecodeError(ValueError):
    """Raised when an inbound frame cannot be decoded into a message."""


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def serialize_message(message: Any) -> bytes:
    """Serialize a known message into tagged, deterministic JSON bytes."""
    kind = MESSAGE_KINDS.get(type(message))
    if kind is None:
        raise TypeError(f"Unsupported message type: {type(message).__name__}")
    payload = _to_jsonable(message)
    payload["kind"] = kind
    data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    if len(data) > MAX_FRAME_BYTES:
        raise ValueError(
            f"Serialized frame exceeds max size ({len(data)} bytes > {MAX_FRAME_BYTES})."
        )
    return data


def _vec2(raw: Any) -> Vec2:
    return Vec2(float(raw["x"]), float(raw["y"]))


def _asteroid(raw: Any) -> Asteroid:
    return Asteroid(
        id=int(raw["id"]),
        position=_vec2(raw["position"]),
        velocity=_vec2(raw["velocity"]),
        size=float(raw["size"]),
    )


def _build_camera_spec(payload: Mapping[str, Any]) -> CameraSpec:
    enabled = payload.get("enabled", True)
    if not isinstance(enabled, bool):
        raise TypeError("enabled must be a boolean")
    return CameraSpec(enabled=enabled, zoom=float(payload.get("zoom", 1.0)))


def _build_image_request(payload: Mapping[str, Any]) -> ImageRequest:
    asteroid_id = payload["id"]
    if isinstance(asteroid_id, bool) or not isinstance(asteroid_id, int):
        raise TypeError("id must be an integer")
    return ImageRequest(id=asteroid_id)


def _build_asteroid_frame(payload: Mapping[str, Any]) -> AsteroidFrame:
    return AsteroidFrame(
        asteroids=tuple(_asteroid(raw) for raw in payload["asteroids"]),
        timestamp=int(payload["timestamp"]),
    )


def _build_image_data(payload: Mapping[str, Any]) -> ImageData:
    return ImageData(
        image=base64.b64decode(payload["image"], validate=True),
        id=int(payload["id"]),
        x_offset=int(payload["x_offset"]),
        y_offset=int(payload["y_offset"]),
    )


_BUILDERS: dict[str, Callable[[Mapping[str, Any]], Message]] = {
    KIND_CAMERA_SPEC: _build_camera_spec,
    KIND_IMAGE_REQUEST: _build_image_request,
    KIND_ASTEROID_FRAME: _build_asteroid_frame,
    KIND_IMAGE_DATA: _build_image_data,
}


def decode_message(data: bytes | str) -> Message:
    """Decode one frame into a message variant.

    Unknown kinds come back as ``UnknownMessage``; anything that is not a
    well-formed tagged object raises ``MessageDecodeError``.
    """
    if len(data) > MAX_FRAME_BYTES:
        raise MessageDecodeError(f"Frame exceeds max size ({len(data)} > {MAX_FRAME_BYTES}).")
    try:
        payload = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MessageDecodeError(f"Frame is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MessageDecodeError("Frame must be a JSON object.")
    kind = payload.pop("kind", None)
    if not isinstance(kind, str) or not kind:
        raise MessageDecodeError("Frame is missing a 'kind' tag.")

    builder = _BUILDERS.get(kind)
    if builder is None:
        return UnknownMessage(kind=kind, payload=payload)
    try:
        return builder(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise MessageDecodeError(f"Malformed '{kind}' frame: {exc}") from exc
