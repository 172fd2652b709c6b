"""Abstract base class for raster image conversion."""

from abc import ABC, abstractmethod
from pathlib import Path


class ImageConversionError(Exception):
    """Raised when a source image cannot be read or encoded."""

    def __init__(self, source: Path, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Could not convert {source.name}: {reason}")


class ImageConverterBase(ABC):
    """Abstract base class for thumbnail image encoding."""

    @abstractmethod
    async def to_webp(
        self,
        source: Path,
        destination: Path,
        quality: int = 80,
    ) -> Path:
        """Encode ``source`` as WebP at ``destination``.

        Args:
            source: Any raster format the implementation can read.
            destination: Output path, overwritten if present.
            quality: Lossy quality, 1-100.

        Returns:
            The destination path.

        Raises:
            ImageConversionError: If the source is unreadable.
        """
