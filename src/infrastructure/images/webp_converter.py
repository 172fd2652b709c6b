"""Pillow implementation of WebP thumbnail encoding."""

import asyncio
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from src.infrastructure.images.base import ImageConversionError, ImageConverterBase


class PillowWebPConverter(ImageConverterBase):
    """Encodes thumbnails to WebP with Pillow.

    Pillow work is CPU bound, so it runs in the default executor.
    """

    async def to_webp(
        self,
        source: Path,
        destination: Path,
        quality: int = 80,
    ) -> Path:
        """Encode ``source`` as WebP at ``destination``."""
        loop = asyncio.get_event_loop()

        def _convert() -> None:
            try:
                with Image.open(source) as img:
                    # WebP has no palette or CMYK mode
                    if img.mode not in ("RGB", "RGBA"):
                        has_alpha = "A" in img.getbands() or "transparency" in img.info
                        img = img.convert("RGBA" if has_alpha else "RGB")
                    img.save(destination, format="WEBP", quality=quality)
            except (UnidentifiedImageError, OSError) as e:
                raise ImageConversionError(source, str(e)) from e

        await loop.run_in_executor(None, _convert)
        return destination
