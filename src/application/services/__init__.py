"""Application services for video upload, processing and delivery."""

from src.application.services.jobs import BackgroundJobRunner
from src.application.services.lifecycle import VideoDeletionManager, remove_directory
from src.application.services.processing import VideoProcessingPipeline
from src.application.services.storage import VideoRecordStore
from src.application.services.thumbnails import CustomThumbnailService
from src.application.services.videos import StoredUpload, VideoService

__all__ = [
    "BackgroundJobRunner",
    "CustomThumbnailService",
    "StoredUpload",
    "VideoDeletionManager",
    "VideoProcessingPipeline",
    "VideoRecordStore",
    "VideoService",
    "remove_directory",
]
