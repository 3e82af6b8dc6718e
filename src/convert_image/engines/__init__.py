"""
Conversion strategies, in the order the chain tries them.
"""

from .base import ConversionStrategy
from .cli_tools import FfmpegFrameStrategy, HeifConvertStrategy, ImageMagickStrategy
from .pillow_engine import PillowStrategy
from .pypdfium2_engine import Pdfium2FirstPageStrategy

__all__ = [
    "ConversionStrategy",
    "FfmpegFrameStrategy",
    "HeifConvertStrategy",
    "ImageMagickStrategy",
    "Pdfium2FirstPageStrategy",
    "PillowStrategy",
]
