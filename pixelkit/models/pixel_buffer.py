from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Union
import numpy as np

from ..errors import InvalidParameterError

CHANNELS = 4  # R, G, B, A interleaved


def clamp_u8(values: np.ndarray) -> np.ndarray:
    """
    Round half-up to the nearest integer and clamp into [0, 255].
    Used for every float -> 8-bit write-back so the numeric policy lives in one place.
    """
    return np.clip(np.floor(np.asarray(values, dtype=np.float64) + 0.5), 0, 255).astype(np.uint8)


@dataclass(eq=False)
class PixelBuffer:
    """
    Simple data object: RGBA pixels, shape (H, W, 4), dtype uint8.
    The flat view (``raw_pixels``) always has width * height * 4 samples.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise InvalidParameterError(f"pixels must be a numpy array, got {type(pixels).__name__}")
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise InvalidParameterError(f"Expected pixels of shape (H, W, 4), got {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidParameterError(f"Width and height must be > 0, got {pixels.shape[1]}x{pixels.shape[0]}")
        if pixels.dtype != np.uint8:
            raise InvalidParameterError(f"Expected uint8 samples, got {pixels.dtype}")
        if not pixels.flags["C_CONTIGUOUS"]:
            self.pixels = np.ascontiguousarray(pixels)

    # ─── Constructors ───────────────────────────────────────────────
    @classmethod
    def from_raw(
        cls,
        samples: Union[bytes, bytearray, Sequence[int], np.ndarray],
        width: int,
        height: int,
    ) -> PixelBuffer:
        """
        Build a buffer from a flat RGBA sample sequence.

        Raises:
            InvalidParameterError: non-positive dimensions, wrong sample count
            or samples outside [0, 255].
        """
        if width <= 0 or height <= 0:
            raise InvalidParameterError(f"Width and height must be > 0, got {width}x{height}")
        if isinstance(samples, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(bytes(samples), dtype=np.uint8)
        else:
            arr = np.asarray(samples)
            if arr.ndim != 1:
                raise InvalidParameterError(f"Expected a flat sample sequence, got shape {arr.shape}")
            if arr.size and (arr.min() < 0 or arr.max() > 255):
                raise InvalidParameterError("Samples must be in [0, 255]")
            flat = arr.astype(np.uint8)

        expected = width * height * CHANNELS
        if flat.size != expected:
            raise InvalidParameterError(
                f"Expected {expected} samples for {width}x{height} RGBA, got {flat.size}"
            )
        return cls(flat.reshape(height, width, CHANNELS).copy())

    @classmethod
    def filled(cls, width: int, height: int, rgba: Sequence[int] = (0, 0, 0, 255)) -> PixelBuffer:
        """Uniform buffer of a single RGBA colour."""
        if width <= 0 or height <= 0:
            raise InvalidParameterError(f"Width and height must be > 0, got {width}x{height}")
        if len(rgba) != CHANNELS:
            raise InvalidParameterError(f"Fill colour must have 4 components, got {len(rgba)}")
        if any(not 0 <= int(v) <= 255 for v in rgba):
            raise InvalidParameterError(f"Fill colour components must be in [0, 255], got {tuple(rgba)}")
        pixels = np.empty((height, width, CHANNELS), dtype=np.uint8)
        pixels[:, :] = np.asarray(rgba, dtype=np.uint8)
        return cls(pixels)

    # ─── Accessors ──────────────────────────────────────────────────
    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def raw_pixels(self) -> bytes:
        """Flat RGBA byte sequence (row-major)."""
        return self.pixels.tobytes()

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3].copy()

    def rgb(self) -> np.ndarray:
        """Colour channels as float64, shape (H, W, 3), values 0..255."""
        return self.pixels[:, :, :3].astype(np.float64)

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise InvalidParameterError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    # ─── Derivation ─────────────────────────────────────────────────
    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.pixels.copy())

    def with_rgb(self, rgb: np.ndarray) -> PixelBuffer:
        """
        New buffer with the given colour channels (rounded + clamped)
        and this buffer's alpha untouched.
        """
        out = self.pixels.copy()
        out[:, :, :3] = clamp_u8(rgb)
        return PixelBuffer(out)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and np.array_equal(self.pixels, other.pixels)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"
