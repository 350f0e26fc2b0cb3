"""Placeholder camera chunks for requested asteroids."""

from __future__ import annotations

import cv2
import numpy as np

from core.asteroid import Asteroid
from core.field import AsteroidField
from core.frames import ImageData


class ImagerySynthesizer:
    """Render a tagged grayscale chunk for an asteroid in the field.

    Unknown ids resolve to ``BAD_ASTEROID`` through ``AsteroidField.lookup``
    so a request always yields an image.
    """

    PADDING = 5
    FONT = cv2.FONT_HERSHEY_PLAIN
    FONT_SCALE = 0.8

    def __init__(self, field: AsteroidField, chunk_width: int = 50, chunk_height: int = 50) -> None:
        self.field = field
        self.chunk_width = int(chunk_width)
        self.chunk_height = int(chunk_height)

    def render_chunk(self, asteroid: Asteroid) -> np.ndarray:
        """White chunk with the asteroid id written near the lower-left corner."""
        chunk = np.full((self.chunk_height, self.chunk_width), 255, dtype=np.uint8)
        cv2.putText(
            chunk,
            str(asteroid.id),
            (self.PADDING, self.chunk_height - self.PADDING),
            self.FONT,
            self.FONT_SCALE,
            0,
            1,
            cv2.LINE_8,
        )
        return chunk

    @staticmethod
    def offsets(asteroid: Asteroid) -> tuple[int, int]:
        """Pixel offsets: position divided by half the size, truncated toward zero."""
        half_size = asteroid.size / 2
        return int(asteroid.position.x / half_size), int(asteroid.position.y / half_size)

    def synthesize(self, asteroid_id: int) -> ImageData:
        asteroid = self.field.lookup(asteroid_id)
        ok, encoded = cv2.imencode(".png", self.render_chunk(asteroid))
        if not ok:
            raise RuntimeError(f"PNG encoding failed for asteroid {asteroid.id}")
        x_offset, y_offset = self.offsets(asteroid)
        return ImageData(image=encoded.tobytes(), id=asteroid.id, x_offset=x_offset, y_offset=y_offset)


def decode_image(data: bytes) -> np.ndarray:
    """Decode PNG bytes from an ``ImageData`` back into a grayscale array."""
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise ValueError("Image payload is not a decodable PNG.")
    return image
