"""Data Transfer Objects for application layer."""

from src.application.dtos.videos import (
    AcceptedResponse,
    DeleteVideoResponse,
    SignedUrlResponse,
    UploadAcceptedResponse,
    VideoDurationResponse,
    VideoListResponse,
    VideoMetadataInput,
    VideoResponse,
    VideoStatusResponse,
    VideoSummary,
    parse_tags,
)

__all__ = [
    "AcceptedResponse",
    "DeleteVideoResponse",
    "SignedUrlResponse",
    "UploadAcceptedResponse",
    "VideoDurationResponse",
    "VideoListResponse",
    "VideoMetadataInput",
    "VideoResponse",
    "VideoStatusResponse",
    "VideoSummary",
    "parse_tags",
]
