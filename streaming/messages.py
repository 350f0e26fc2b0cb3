"""Tagged message variants exchanged with the ground station."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from core.frames import AsteroidFrame, ImageData


@dataclass(frozen=True)
class CameraSpec:
    """Camera configuration pushed by the ground station (stored, not applied)."""

    enabled: bool = True
    zoom: float = 1.0


@dataclass(frozen=True)
class ImageRequest:
    """Ask for a synthetic image chunk of one asteroid."""

    id: int


@dataclass(frozen=True)
class UnknownMessage:
    """Well-formed frame whose ``kind`` this side does not understand."""

    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


KIND_CAMERA_SPEC = "camera_spec"
KIND_IMAGE_REQUEST = "image_request"
KIND_ASTEROID_FRAME = "asteroid_frame"
KIND_IMAGE_DATA = "image_data"

MESSAGE_KINDS: dict[type[Any], str] = {
    CameraSpec: KIND_CAMERA_SPEC,
    ImageRequest: KIND_IMAGE_REQUEST,
    AsteroidFrame: KIND_ASTEROID_FRAME,
    ImageData: KIND_IMAGE_DATA,
}

Message = Union[CameraSpec, ImageRequest, AsteroidFrame, ImageData, UnknownMessage]
