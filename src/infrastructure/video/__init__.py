"""Video codec services."""

from src.infrastructure.video.base import (
    RENDITIONS,
    CodecError,
    CodecInvokerBase,
    ProgressCallback,
    Rendition,
    VideoProbe,
)
from src.infrastructure.video.cancellation import CancellationToken
from src.infrastructure.video.ffmpeg_codec import FFmpegCodecInvoker

__all__ = [
    # Base classes
    "CodecInvokerBase",
    "CodecError",
    "VideoProbe",
    "Rendition",
    "RENDITIONS",
    "ProgressCallback",
    "CancellationToken",
    # Implementations
    "FFmpegCodecInvoker",
]
