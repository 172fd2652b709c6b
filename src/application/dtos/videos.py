"""DTOs for video upload, management and delivery."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.models.video import Video, VideoStatus

MAX_TAGS = 50
MAX_TAG_LENGTH = 50


def parse_tags(value: Any) -> list[str] | None:
    """Accept tags as a list, a JSON array string or a comma separated string."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError("tags must be a JSON array of strings") from e
        else:
            value = text.split(",")
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise ValueError("tags must be a list of strings")

    tags = [t.strip() for t in value if t.strip()]
    if len(tags) > MAX_TAGS:
        raise ValueError(f"at most {MAX_TAGS} tags are allowed")
    too_long = [t for t in tags if len(t) > MAX_TAG_LENGTH]
    if too_long:
        raise ValueError(f"tags must be at most {MAX_TAG_LENGTH} characters")
    return tags


class VideoMetadataInput(BaseModel):
    """Owner-editable metadata, used for upload forms and PATCH bodies."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=150)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=50)
    tags: list[str] | None = Field(default=None)

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """Trim whitespace; a blank value counts as not provided."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> list[str] | None:
        return parse_tags(v)

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set."""
        return self.model_dump(exclude_none=True)


class UploadAcceptedResponse(BaseModel):
    """Returned as soon as an upload has been accepted for processing."""

    status: VideoStatus = Field(description="Always inProgress")
    id: str = Field(description="Id of the new video")


class VideoResponse(BaseModel):
    """Full video details for its owner."""

    id: str
    owner_id: str
    title: str | None
    description: str | None
    category: str | None
    tags: list[str]
    status: VideoStatus
    duration_seconds: float | None
    original_filename: str | None
    mime_type: str | None
    size_bytes: int | None
    manifest_name: str | None
    static_thumb_name: str | None
    animated_thumb_name: str | None
    custom_thumb_name: str | None
    original_asset_name: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(**video.model_dump(include=set(cls.model_fields)))


class VideoSummary(BaseModel):
    """One entry in an owner's video list."""

    id: str
    title: str | None
    description: str | None
    category: str | None
    tags: list[str]
    status: VideoStatus
    duration_seconds: float | None
    size_bytes: int | None
    created_at: datetime

    @classmethod
    def from_video(cls, video: Video) -> "VideoSummary":
        return cls(**video.model_dump(include=set(cls.model_fields)))


class VideoListResponse(BaseModel):
    """Paginated list of an owner's videos."""

    videos: list[VideoSummary]
    total_count: int = Field(ge=0)
    skip: int = Field(ge=0)
    limit: int = Field(ge=1)


class VideoStatusResponse(BaseModel):
    """Lightweight status poll result."""

    id: str
    status: VideoStatus


class VideoDurationResponse(BaseModel):
    """Duration of a video, known once the probe has run."""

    id: str
    duration_seconds: float | None


class SignedUrlResponse(BaseModel):
    """Signed query parameters for streaming and thumbnail URLs."""

    video_id: str
    expires: int = Field(description="Expiry as epoch milliseconds")
    signature: str
    uid: str
    query: str = Field(description="Ready-made query string, including '?'")
    stream_url: str = Field(description="Signed master playlist URL")
    thumbnail_url: str = Field(description="Signed thumbnail URL")


class AcceptedResponse(BaseModel):
    """Generic acknowledgement for background work."""

    message: str


class DeleteVideoResponse(BaseModel):
    """Response from deleting a video."""

    id: str
    message: str
