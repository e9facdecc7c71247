from __future__ import annotations

import logging
import os
from typing import Optional, Union

import cv2
import numpy as np
from dotenv import load_dotenv

from ..errors import InvalidParameterError
from ..models import kernel as kernels
from ..models.colour import Channel
from ..models.kernel import Kernel
from ..models.pixel_buffer import PixelBuffer, clamp_u8

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# OpenCV worker threads; unset keeps the OpenCV default.
_CV_THREADS = os.getenv("PIXELKIT_CV_THREADS")
if _CV_THREADS:
    cv2.setNumThreads(int(_CV_THREADS))

# Out-of-bounds neighbours resolve to the nearest edge pixel (edge replication).
BORDER_MODE = cv2.BORDER_REPLICATE


class ConvolutionService:
    """
    Applies 2D kernels to every pixel neighbourhood.

    • colour channels are filtered independently, alpha passes through
      unless ``include_alpha`` is set
    • borders use edge replication
    • separable kernels run as a horizontal + a vertical 1D pass
    • results are divided by the kernel's effective divisor, then rounded
      and clamped to [0, 255] (negative high-pass sums become 0)
    """

    # ─── Core ─────────────────────────────────────────────────────────
    @staticmethod
    def _filter(channels: np.ndarray, kernel: Kernel) -> np.ndarray:
        """
        Raw weighted sums (float64, not divided, not clamped) for an
        (H, W, C) float array.
        """
        if kernel.is_separable:
            # cv2 wants writable arrays
            row, col = (np.array(part) for part in kernel.separable)
            out = cv2.sepFilter2D(
                channels, cv2.CV_64F, row, col,
                anchor=(-1, -1), delta=0, borderType=BORDER_MODE,
            )
        else:
            out = cv2.filter2D(
                channels, cv2.CV_64F, np.array(kernel.weights),
                anchor=(-1, -1), delta=0, borderType=BORDER_MODE,
            )
        # OpenCV drops the channel axis for single-channel input.
        return out.reshape(channels.shape)

    def weighted_sums(self, buffer: PixelBuffer, kernel: Kernel, include_alpha: bool = False) -> np.ndarray:
        """Divided but unclamped float result, shape (H, W, 3) or (H, W, 4)."""
        count = 4 if include_alpha else 3
        channels = np.ascontiguousarray(buffer.pixels[:, :, :count], dtype=np.float64)
        return self._filter(channels, kernel) / kernel.effective_divisor

    def convolve(self, buffer: PixelBuffer, kernel: Kernel, include_alpha: bool = False) -> PixelBuffer:
        """
        Returns a new buffer of identical dimensions.

        Args:
            buffer: source pixels (not modified)
            kernel: odd square Kernel
            include_alpha: also filter the alpha channel
        """
        if not isinstance(kernel, Kernel):
            raise InvalidParameterError(f"Expected a Kernel, got {type(kernel).__name__}")
        logger.debug(
            f"convolve {kernel.size}x{kernel.size} "
            f"({'separable' if kernel.is_separable else '2D'}) on {buffer}"
        )
        result = self.weighted_sums(buffer, kernel, include_alpha)
        out = buffer.pixels.copy()
        out[:, :, :result.shape[2]] = clamp_u8(result)
        return PixelBuffer(out)

    # ─── Blur / sharpen ───────────────────────────────────────────────
    def box_blur(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.BOX_BLUR)

    def gaussian_blur(self, buffer: PixelBuffer, radius: int = 3, sigma: Optional[float] = None) -> PixelBuffer:
        return self.convolve(buffer, kernels.gaussian(radius, sigma))

    def sharpen(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.SHARPEN)

    def identity(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.IDENTITY)

    def emboss(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.EMBOSS)

    # ─── Edge detection ───────────────────────────────────────────────
    def edge_detection(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.EDGE_DETECTION)

    def edge_one(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.EDGE_ONE)

    def laplace(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.LAPLACE)

    def prewitt_horizontal(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.PREWITT_HORIZONTAL)

    def sobel_horizontal(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.SOBEL_HORIZONTAL)

    def sobel_vertical(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.SOBEL_VERTICAL)

    def detect_horizontal_lines(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.HORIZONTAL_LINES)

    def detect_vertical_lines(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.VERTICAL_LINES)

    def detect_45_deg_lines(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.LINES_45_DEG)

    def detect_135_deg_lines(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.convolve(buffer, kernels.LINES_135_DEG)

    def sobel(self, buffer: PixelBuffer, channel: Union[Channel, int, str, None] = None) -> PixelBuffer:
        """
        Gradient magnitude sqrt(gx² + gy²), clamped to [0, 255].

        With ``channel`` given, the magnitude of that channel alone is
        broadcast to R, G and B (greyscale edge map). Alpha is preserved.
        """
        if channel is None:
            source = buffer.rgb()
        else:
            channel = Channel.resolve(channel)
            source = buffer.pixels[:, :, int(channel)].astype(np.float64)[:, :, np.newaxis]

        source = np.ascontiguousarray(source)
        gx = self._filter(source, kernels.SOBEL_HORIZONTAL)
        gy = self._filter(source, kernels.SOBEL_VERTICAL)
        magnitude = np.hypot(gx, gy)
        if channel is not None:
            magnitude = np.repeat(magnitude, 3, axis=2)
        logger.debug(f"sobel magnitude (channel={channel}) on {buffer}")
        return buffer.with_rgb(magnitude)
