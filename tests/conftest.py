import numpy as np
import pytest

from pixelkit.models.pixel_buffer import PixelBuffer


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def grey_2x2() -> PixelBuffer:
    """2x2 mid-grey, opaque."""
    return PixelBuffer.filled(2, 2, (128, 128, 128, 255))


@pytest.fixture
def random_buffer(rng) -> PixelBuffer:
    """24x16 random RGBA with varied alpha."""
    return PixelBuffer(rng.integers(0, 256, size=(16, 24, 4), dtype=np.uint8))


@pytest.fixture
def gradient_buffer() -> PixelBuffer:
    """32x8 horizontal gradient black → white, opaque."""
    pixels = np.zeros((8, 32, 4), dtype=np.uint8)
    ramp = np.linspace(0, 255, 32).round().astype(np.uint8)
    pixels[:, :, 0] = ramp
    pixels[:, :, 1] = ramp
    pixels[:, :, 2] = ramp
    pixels[:, :, 3] = 255
    return PixelBuffer(pixels)
