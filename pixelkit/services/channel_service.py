from __future__ import annotations

import logging
import numbers
from typing import Union

import numpy as np

from ..errors import InvalidParameterError
from ..models.colour import Channel, Comparison
from ..models.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

ChannelLike = Union[Channel, int, str]


def _check_delta(delta, name: str = "delta") -> int:
    if isinstance(delta, bool) or not isinstance(delta, numbers.Integral):
        raise InvalidParameterError(f"{name} must be an integer, got {delta!r}")
    return int(delta)


def _saturating_delta(delta, name: str = "delta") -> int:
    # any delta beyond +-255 already saturates every 8-bit sample
    return max(-255, min(255, _check_delta(delta, name)))


class ChannelService:
    """
    Per-channel arithmetic on RGBA buffers.

    Saturation is silent: every sum is computed in a wide integer type and
    clamped to [0, 255] before it is written back. Inputs are never
    modified; each call returns a new buffer.
    """

    @staticmethod
    def adjust_channel(buffer: PixelBuffer, channel: ChannelLike, delta: int) -> PixelBuffer:
        """Add a signed ``delta`` to one channel of every pixel, clamped."""
        channel = Channel.resolve(channel)
        delta = _saturating_delta(delta)
        logger.debug(f"adjust_channel {channel.name} {delta:+d} on {buffer}")

        out = buffer.pixels.copy()
        idx = int(channel)
        out[:, :, idx] = np.clip(out[:, :, idx].astype(np.int32) + delta, 0, 255).astype(np.uint8)
        return PixelBuffer(out)

    @staticmethod
    def adjust_channels(buffer: PixelBuffer, red: int = 0, green: int = 0, blue: int = 0) -> PixelBuffer:
        """Add a signed delta to each colour channel at once, clamped."""
        deltas = np.array(
            [_saturating_delta(red, "red"), _saturating_delta(green, "green"), _saturating_delta(blue, "blue")],
            dtype=np.int32,
        )
        out = buffer.pixels.copy()
        out[:, :, :3] = np.clip(out[:, :, :3].astype(np.int32) + deltas, 0, 255).astype(np.uint8)
        return PixelBuffer(out)

    def adjust_brightness(self, buffer: PixelBuffer, delta: int) -> PixelBuffer:
        """Same signed delta on R, G and B."""
        delta = _check_delta(delta)
        return self.adjust_channels(buffer, delta, delta, delta)

    @staticmethod
    def adjust_contrast(buffer: PixelBuffer, contrast: float) -> PixelBuffer:
        """
        Classic contrast curve around mid-grey.

        contrast in [-255, 255]; factor = 259 (c + 255) / (255 (259 - c)).
        """
        contrast = float(contrast)
        if not -255.0 <= contrast <= 255.0:
            raise InvalidParameterError(f"contrast must be in [-255, 255], got {contrast}")
        factor = (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))
        return buffer.with_rgb(factor * (buffer.rgb() - 128.0) + 128.0)

    @staticmethod
    def swap_channels(buffer: PixelBuffer, first: ChannelLike, second: ChannelLike) -> PixelBuffer:
        """Exchange two channels per pixel. Applying it twice restores the input."""
        first = Channel.resolve(first)
        second = Channel.resolve(second)
        out = buffer.pixels.copy()
        out[:, :, [int(first), int(second)]] = buffer.pixels[:, :, [int(second), int(first)]]
        return PixelBuffer(out)

    @staticmethod
    def remove_channel(
        buffer: PixelBuffer,
        channel: ChannelLike,
        threshold: int = 255,
        comparison: Union[Comparison, str] = Comparison.BELOW,
    ) -> PixelBuffer:
        """
        Zero ``channel`` wherever its value is strictly below (or above)
        ``threshold``. With the defaults the channel is removed entirely
        except where it is already at 255.
        """
        channel = Channel.resolve(channel)
        comparison = Comparison.resolve(comparison)
        threshold = _check_delta(threshold, "threshold")
        if not 0 <= threshold <= 255:
            raise InvalidParameterError(f"threshold must be in [0, 255], got {threshold}")

        out = buffer.pixels.copy()
        values = out[:, :, int(channel)]
        mask = values < threshold if comparison is Comparison.BELOW else values > threshold
        values[mask] = 0
        logger.debug(f"remove_channel {channel.name} {comparison.value} {threshold}: {int(mask.sum())} px")
        return PixelBuffer(out)

    @staticmethod
    def invert(buffer: PixelBuffer) -> PixelBuffer:
        out = buffer.pixels.copy()
        out[:, :, :3] = 255 - out[:, :, :3]
        return PixelBuffer(out)

