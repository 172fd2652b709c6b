"""Thumbnail image conversion."""

from src.infrastructure.images.base import ImageConversionError, ImageConverterBase
from src.infrastructure.images.webp_converter import PillowWebPConverter

__all__ = [
    # Base classes
    "ImageConverterBase",
    "ImageConversionError",
    # Implementations
    "PillowWebPConverter",
]
