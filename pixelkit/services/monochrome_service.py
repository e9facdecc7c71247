from __future__ import annotations

import logging
from enum import Enum
from typing import Union

import numpy as np

from ..errors import InvalidParameterError
from ..models.colour import Rgb
from ..models.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])


class GrayscaleMethod(Enum):
    AVERAGE = "average"
    LUMA = "luma"


class MonochromeService:
    """Greyscale-family effects. Alpha is always preserved."""

    @staticmethod
    def _intensity(buffer: PixelBuffer, method: GrayscaleMethod) -> np.ndarray:
        rgb = buffer.rgb()
        if method is GrayscaleMethod.AVERAGE:
            return rgb.mean(axis=-1)
        return rgb @ LUMA_WEIGHTS

    def grayscale(self, buffer: PixelBuffer, method: Union[GrayscaleMethod, str] = GrayscaleMethod.LUMA) -> PixelBuffer:
        try:
            method = GrayscaleMethod(method)
        except ValueError:
            raise InvalidParameterError(f"Unknown grayscale method: {method!r}") from None
        grey = self._intensity(buffer, method)
        return buffer.with_rgb(np.repeat(grey[..., np.newaxis], 3, axis=-1))

    @staticmethod
    def sepia(buffer: PixelBuffer) -> PixelBuffer:
        return buffer.with_rgb(buffer.rgb() @ SEPIA_MATRIX.T)

    def threshold(self, buffer: PixelBuffer, level: int = 128) -> PixelBuffer:
        """Luma >= level → white, else black."""
        if isinstance(level, bool) or not 0 <= level <= 255:
            raise InvalidParameterError(f"threshold level must be in [0, 255], got {level}")
        grey = self._intensity(buffer, GrayscaleMethod.LUMA)
        binary = np.where(grey >= level, 255.0, 0.0)
        logger.debug(f"threshold at {level} on {buffer}")
        return buffer.with_rgb(np.repeat(binary[..., np.newaxis], 3, axis=-1))

    def duotone(self, buffer: PixelBuffer, dark, light) -> PixelBuffer:
        """Map luma linearly between two colours (dark for 0, light for 255)."""
        dark = np.array(Rgb.from_sequence(dark).as_tuple(), dtype=np.float64)
        light = np.array(Rgb.from_sequence(light).as_tuple(), dtype=np.float64)
        t = (self._intensity(buffer, GrayscaleMethod.LUMA) / 255.0)[..., np.newaxis]
        return buffer.with_rgb(dark * (1.0 - t) + light * t)
