"""Domain value objects."""

from src.domain.value_objects.video_id import VideoId

__all__ = [
    "VideoId",
]
