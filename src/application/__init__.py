"""Application layer - use cases and orchestration.

This layer contains:
- Services: Business logic orchestration
- DTOs: Data transfer objects for API boundaries
- Pipeline: The background video processing workflow
"""

from src.application.dtos import (
    SignedUrlResponse,
    UploadAcceptedResponse,
    VideoMetadataInput,
    VideoResponse,
    VideoStatusResponse,
)
from src.application.services import (
    BackgroundJobRunner,
    VideoDeletionManager,
    VideoProcessingPipeline,
    VideoRecordStore,
    VideoService,
)

__all__ = [
    # DTOs
    "SignedUrlResponse",
    "UploadAcceptedResponse",
    "VideoMetadataInput",
    "VideoResponse",
    "VideoStatusResponse",
    # Services
    "BackgroundJobRunner",
    "VideoDeletionManager",
    "VideoProcessingPipeline",
    "VideoRecordStore",
    "VideoService",
]
