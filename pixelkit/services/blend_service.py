from __future__ import annotations

import logging
from typing import Callable, Dict, Union

import numpy as np

from ..errors import DimensionMismatchError, InvalidParameterError
from ..models.colour import BlendMode
from ..models.pixel_buffer import PixelBuffer, clamp_u8

logger = logging.getLogger(__name__)

MAX = 255.0


# ─── Per-channel formulas (a = top, b = bottom, float 0..255) ────────────

def _multiply(a, b):
    return a * b / MAX


def _screen(a, b):
    return MAX - (MAX - a) * (MAX - b) / MAX


def _overlay(a, b):
    # branch on the bottom layer
    return np.where(b <= 127, 2.0 * a * b / MAX, MAX - 2.0 * (MAX - a) * (MAX - b) / MAX)


def _hard_light(a, b):
    # overlay with the layers' roles swapped
    return _overlay(b, a)


def _soft_light(a, b):
    # pegtop formula
    return ((MAX - 2.0 * a) * b * b / MAX + 2.0 * a * b) / MAX


def _dodge(a, b):
    room = np.where(a >= MAX, 1.0, MAX - a)
    return np.where(a >= MAX, MAX, np.minimum(MAX, b * MAX / room))


def _burn(a, b):
    safe = np.where(a <= 0, 1.0, a)
    return np.where(a <= 0, 0.0, np.maximum(0.0, MAX - (MAX - b) * MAX / safe))


BLEND_FUNCTIONS: Dict[BlendMode, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    BlendMode.MULTIPLY: _multiply,
    BlendMode.SCREEN: _screen,
    BlendMode.OVERLAY: _overlay,
    BlendMode.DIFFERENCE: lambda a, b: np.abs(a - b),
    BlendMode.DARKEN: np.minimum,
    BlendMode.LIGHTEN: np.maximum,
    BlendMode.ADD: lambda a, b: np.minimum(a + b, MAX),
    BlendMode.EXCLUSION: lambda a, b: a + b - 2.0 * a * b / MAX,
    BlendMode.SOFT_LIGHT: _soft_light,
    BlendMode.HARD_LIGHT: _hard_light,
    BlendMode.DODGE: _dodge,
    BlendMode.BURN: _burn,
    BlendMode.OVER: lambda a, b: a,
}


def composite_over(top_rgb, top_alpha, bottom_rgb, bottom_alpha):
    """
    "Over" compositing with straight (non-premultiplied) alpha in 0..255:

        colour = top * αt + bottom * (1 - αt)
        alpha  = αt + αb * (1 - αt)
    """
    at = (top_alpha / MAX)[..., np.newaxis]
    ab = (bottom_alpha / MAX)[..., np.newaxis]
    colour = top_rgb * at + bottom_rgb * (1.0 - at)
    alpha = (at + ab * (1.0 - at))[..., 0] * MAX
    return colour, alpha


class BlendService:
    """Two-buffer blend operators and offset watermarking."""

    def blend(
        self,
        top: PixelBuffer,
        bottom: PixelBuffer,
        mode: Union[BlendMode, str],
        composite: bool = False,
    ) -> PixelBuffer:
        """
        Combine two equally sized buffers channel by channel.

        • output alpha is the top's alpha
        • ``mode=OVER`` or ``composite=True`` → the blended colour is
          composited over ``bottom`` using the top alpha, and the output
          alpha is the "over" alpha

        Raises:
            DimensionMismatchError: when the buffers differ in size.
        """
        mode = BlendMode.resolve(mode)
        if top.dimensions != bottom.dimensions:
            raise DimensionMismatchError(top.dimensions, bottom.dimensions)

        a = top.rgb()
        b = bottom.rgb()
        blended = BLEND_FUNCTIONS[mode](a, b)
        logger.debug(f"blend {mode.value} (composite={composite}) {top} onto {bottom}")

        out = np.empty_like(top.pixels)
        if composite or mode is BlendMode.OVER:
            colour, alpha = composite_over(
                blended, top.pixels[:, :, 3].astype(np.float64),
                b, bottom.pixels[:, :, 3].astype(np.float64),
            )
            out[:, :, :3] = clamp_u8(colour)
            out[:, :, 3] = clamp_u8(alpha)
        else:
            out[:, :, :3] = clamp_u8(blended)
            out[:, :, 3] = top.pixels[:, :, 3]
        return PixelBuffer(out)

    def watermark(self, destination: PixelBuffer, overlay: PixelBuffer, x: int, y: int) -> PixelBuffer:
        """
        Composite ``overlay`` onto ``destination`` with its top-left corner
        at (x, y). Parts falling outside the destination are cropped;
        an overlay entirely outside leaves the destination unchanged.
        """
        if isinstance(x, bool) or isinstance(y, bool) or int(x) != x or int(y) != y:
            raise InvalidParameterError(f"Watermark offset must be integers, got ({x!r}, {y!r})")
        x, y = int(x), int(y)

        # Visible window in destination coordinates.
        x0, y0 = max(x, 0), max(y, 0)
        x1 = min(x + overlay.width, destination.width)
        y1 = min(y + overlay.height, destination.height)

        out = destination.pixels.copy()
        if x0 >= x1 or y0 >= y1:
            logger.debug(f"watermark at ({x}, {y}) falls outside {destination}; nothing drawn")
            return PixelBuffer(out)

        src = overlay.pixels[y0 - y:y1 - y, x0 - x:x1 - x].astype(np.float64)
        dst = out[y0:y1, x0:x1].astype(np.float64)
        colour, alpha = composite_over(src[..., :3], src[..., 3], dst[..., :3], dst[..., 3])
        out[y0:y1, x0:x1, :3] = clamp_u8(colour)
        out[y0:y1, x0:x1, 3] = clamp_u8(alpha)
        logger.debug(f"watermark {overlay} at ({x}, {y}) on {destination}")
        return PixelBuffer(out)
