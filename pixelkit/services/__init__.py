from .blend_service import BlendService
from .channel_service import ChannelService
from .colour_space_service import ColourSpaceService
from .convolution_service import ConvolutionService
from .image_service import ImageService
from .monochrome_service import MonochromeService
from .transform_service import TransformService

__all__ = [
    "BlendService",
    "ChannelService",
    "ColourSpaceService",
    "ConvolutionService",
    "ImageService",
    "MonochromeService",
    "TransformService",
]
