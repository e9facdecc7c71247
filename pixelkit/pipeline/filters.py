"""
Filter Presets
Each preset is a fixed parameter set fed into the core services.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

from ..errors import InvalidParameterError
from ..models.colour import BlendMode, Channel, ColourSpace
from ..models.pixel_buffer import PixelBuffer
from ..services.blend_service import BlendService
from ..services.channel_service import ChannelService
from ..services.colour_space_service import ColourSpaceService
from ..services.convolution_service import ConvolutionService
from ..services.monochrome_service import MonochromeService

logger = logging.getLogger(__name__)

_colour = ColourSpaceService()
_conv = ConvolutionService()
_channels = ChannelService()
_mono = MonochromeService()
_blend = BlendService()


@dataclass(frozen=True)
class FilterPreset:
    name: str
    description: str
    apply: Callable[[PixelBuffer], PixelBuffer]


def _tint(rgb, opacity):
    return lambda buf: _colour.mix_with_colour(buf, rgb, opacity)


def _vintage(buf: PixelBuffer) -> PixelBuffer:
    buf = _mono.sepia(buf)
    buf = _colour.desaturate(buf, 0.15)
    return _channels.adjust_contrast(buf, -20)


def _dramatic(buf: PixelBuffer) -> PixelBuffer:
    buf = _mono.grayscale(buf)
    buf = _channels.adjust_contrast(buf, 60)
    return _conv.sharpen(buf)


def _golden(buf: PixelBuffer) -> PixelBuffer:
    buf = _colour.mix_with_colour(buf, (255, 200, 80), 0.15)
    return _colour.lighten(buf, 0.05, ColourSpace.LCH)


def _lofi(buf: PixelBuffer) -> PixelBuffer:
    buf = _colour.saturate(buf, 0.2)
    return _channels.adjust_contrast(buf, 40)


def _pastel(buf: PixelBuffer) -> PixelBuffer:
    buf = _colour.desaturate(buf, 0.3)
    return _colour.lighten(buf, 0.1)


def _neon_edges(buf: PixelBuffer) -> PixelBuffer:
    edges = _conv.sobel(buf)
    return _blend.blend(edges, buf, BlendMode.SCREEN)


def _cool_shift(buf: PixelBuffer) -> PixelBuffer:
    buf = _channels.adjust_channel(buf, Channel.BLUE, 30)
    return _colour.hue_rotate(buf, -10, ColourSpace.LCH)


def _soft_glow(buf: PixelBuffer) -> PixelBuffer:
    glow = _conv.gaussian_blur(buf, radius=4)
    return _blend.blend(glow, buf, BlendMode.SOFT_LIGHT)


FILTER_PRESETS: Dict[str, FilterPreset] = {
    preset.name: preset
    for preset in (
        FilterPreset("oceanic", "blue-green tint", _tint((0, 89, 173), 0.2)),
        FilterPreset("islands", "deep blue tint", _tint((0, 24, 95), 0.2)),
        FilterPreset("marine", "navy tint", _tint((0, 14, 119), 0.2)),
        FilterPreset("seagreen", "sea-green tint", _tint((0, 68, 62), 0.2)),
        FilterPreset("flagblue", "saturated blue tint", _tint((0, 0, 131), 0.2)),
        FilterPreset("diamante", "teal tint", _tint((30, 82, 87), 0.1)),
        FilterPreset("rosetint", "pink tint", _tint((192, 28, 118), 0.15)),
        FilterPreset("vintage", "sepia, muted, low contrast", _vintage),
        FilterPreset("dramatic", "high-contrast black and white", _dramatic),
        FilterPreset("golden", "warm tint with a lift in LCh lightness", _golden),
        FilterPreset("lofi", "saturated and punchy", _lofi),
        FilterPreset("pastel", "washed-out and light", _pastel),
        FilterPreset("neon_edges", "Sobel edges screened over the image", _neon_edges),
        FilterPreset("cool_shift", "blue lift with a perceptual hue nudge", _cool_shift),
        FilterPreset("soft_glow", "Gaussian glow soft-lit over the image", _soft_glow),
    )
}


def list_filters() -> List[str]:
    return sorted(FILTER_PRESETS)


def apply_filter(buffer: PixelBuffer, name: str) -> PixelBuffer:
    """
    Apply a named preset and return the new buffer.

    Raises:
        InvalidParameterError: unknown preset name.
    """
    try:
        preset = FILTER_PRESETS[name.strip().lower()]
    except (KeyError, AttributeError):
        raise InvalidParameterError(
            f"Unknown filter {name!r}; available: {', '.join(list_filters())}"
        ) from None
    logger.info(f"Applying filter '{preset.name}' to {buffer}")
    return preset.apply(buffer)
