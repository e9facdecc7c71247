from __future__ import annotations

import logging

import cv2
import numpy as np

from ..errors import InvalidParameterError
from ..models.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

INTERPOLATIONS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


class TransformService:
    """Geometry changes. Each returns a new, invariant-respecting buffer."""

    @staticmethod
    def crop(buffer: PixelBuffer, x1: int, y1: int, x2: int, y2: int) -> PixelBuffer:
        """Keep the half-open rectangle [x1, x2) x [y1, y2)."""
        if not (0 <= x1 < x2 <= buffer.width and 0 <= y1 < y2 <= buffer.height):
            raise InvalidParameterError(
                f"Invalid crop ({x1},{y1})-({x2},{y2}) for {buffer.width}x{buffer.height} buffer"
            )
        return PixelBuffer(buffer.pixels[y1:y2, x1:x2].copy())

    @staticmethod
    def flip_horizontal(buffer: PixelBuffer) -> PixelBuffer:
        return PixelBuffer(np.flip(buffer.pixels, axis=1).copy())

    @staticmethod
    def flip_vertical(buffer: PixelBuffer) -> PixelBuffer:
        return PixelBuffer(np.flip(buffer.pixels, axis=0).copy())

    @staticmethod
    def resize(buffer: PixelBuffer, width: int, height: int, interpolation: str = "lanczos") -> PixelBuffer:
        if width <= 0 or height <= 0:
            raise InvalidParameterError(f"Target size must be > 0, got {width}x{height}")
        try:
            flag = INTERPOLATIONS[interpolation]
        except KeyError:
            raise InvalidParameterError(
                f"Unknown interpolation {interpolation!r}; expected one of {sorted(INTERPOLATIONS)}"
            ) from None
        resized = cv2.resize(buffer.pixels, (int(width), int(height)), interpolation=flag)
        logger.debug(f"resize {buffer} -> {width}x{height} ({interpolation})")
        return PixelBuffer(np.ascontiguousarray(resized))
