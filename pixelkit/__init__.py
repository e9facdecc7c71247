"""
pixelkit: in-memory raster transforms over RGBA pixel buffers.

Layout:
- models: PixelBuffer, colour triples, kernels
- repositories: codec (decode / encode / data URI)
- services: colour spaces, convolution, channels, blending, transforms
- pipeline: named filter presets
"""

from .errors import (
    DimensionMismatchError,
    InvalidParameterError,
    MalformedInputError,
    PixelKitError,
)
from .models.colour import BlendMode, Channel, ColourSpace, Comparison, Hsl, Hsv, Lch, Rgb
from .models.kernel import Kernel
from .models.pixel_buffer import PixelBuffer

__version__ = "1.0.0"

__all__ = [
    "PixelBuffer",
    "Kernel",
    "Rgb",
    "Hsl",
    "Hsv",
    "Lch",
    "Channel",
    "ColourSpace",
    "BlendMode",
    "Comparison",
    "PixelKitError",
    "MalformedInputError",
    "DimensionMismatchError",
    "InvalidParameterError",
]
