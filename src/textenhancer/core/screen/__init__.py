from .capture import ScreenCapturer
from .compression import CompressionPreset, CompressionResult, ImageCompressor

__all__ = [
    "ScreenCapturer",
    "CompressionPreset",
    "CompressionResult",
    "ImageCompressor",
]
