"""Domain exceptions for the video streaming service."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.models.video import VideoStatus


class DomainException(Exception):
    """Base exception for domain errors."""


class VideoNotFoundException(DomainException):
    """Raised when a requested video is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class VideoNotReadyException(DomainException):
    """Raised when derived assets are requested before processing finished."""

    def __init__(self, video_id: str, status: VideoStatus) -> None:
        self.video_id = video_id
        self.status = status
        super().__init__(
            f"Video {video_id} is not ready. Current status: {status.value}"
        )


class AssetNotFoundException(DomainException):
    """Raised when an asset file is missing from a video directory."""

    def __init__(self, video_id: str, asset_name: str) -> None:
        self.video_id = video_id
        self.asset_name = asset_name
        super().__init__(f"Asset '{asset_name}' not found for video {video_id}")


class VideoAccessDeniedException(DomainException):
    """Raised when the requester does not own the video."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Access to video {video_id} is not allowed")


class InvalidVideoIdException(DomainException):
    """Raised when a video id is malformed."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid video id: '{value}'")


class AuthenticationException(DomainException):
    """Raised when a bearer credential is missing or cannot be trusted."""

    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Authentication failed: {reason}")


class SignedUrlException(DomainException):
    """Raised when a signed streaming URL fails verification."""

    MISSING_SIGNATURE = "MISSING_SIGNATURE"
    MALFORMED_EXPIRY = "MALFORMED_EXPIRY"
    EXPIRED = "SIGNED_URL_EXPIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Signed URL rejected: {reason}")


class UploadRejectedException(DomainException):
    """Raised when an uploaded file or its form fields fail validation."""

    INVALID_FIELD = "INVALID_FIELD"
    TOO_LARGE = "FILE_TOO_LARGE"
    UNSUPPORTED_TYPE = "UNSUPPORTED_MEDIA_TYPE"

    def __init__(
        self,
        reason: str,
        message: str,
        field: str | None = None,
    ) -> None:
        self.reason = reason
        self.field = field
        super().__init__(message)


class ProcessingException(DomainException):
    """Raised when a pipeline step fails for a video."""

    def __init__(self, video_id: str, stage: str, reason: str) -> None:
        self.video_id = video_id
        self.stage = stage
        self.reason = reason
        super().__init__(f"Processing failed for {video_id} at {stage}: {reason}")
