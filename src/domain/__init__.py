"""Domain layer - business models and logic."""

from src.domain.exceptions import (
    AssetNotFoundException,
    AuthenticationException,
    DomainException,
    InvalidVideoIdException,
    ProcessingException,
    SignedUrlException,
    UploadRejectedException,
    VideoAccessDeniedException,
    VideoNotFoundException,
    VideoNotReadyException,
)
from src.domain.models import Video, VideoStatus
from src.domain.value_objects import VideoId

__all__ = [
    # Exceptions
    "DomainException",
    "VideoNotFoundException",
    "VideoNotReadyException",
    "AssetNotFoundException",
    "VideoAccessDeniedException",
    "InvalidVideoIdException",
    "AuthenticationException",
    "SignedUrlException",
    "UploadRejectedException",
    "ProcessingException",
    # Video
    "Video",
    "VideoStatus",
    # Value Objects
    "VideoId",
]
