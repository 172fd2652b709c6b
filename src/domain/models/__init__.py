"""Domain models."""

from src.domain.models.video import Video, VideoStatus

__all__ = [
    "Video",
    "VideoStatus",
]
