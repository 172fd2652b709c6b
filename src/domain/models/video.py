"""Video domain model."""

from datetime import UTC, datetime
from enum import Enum
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field


class VideoStatus(str, Enum):
    """Lifecycle status of an uploaded video."""

    IN_PROGRESS = "inProgress"  # Accepted, pipeline running
    UPLOADED = "uploaded"  # Streaming assets ready
    ERROR = "error"  # Processing failed, terminal


class Video(BaseModel):
    """Core entity representing one uploaded video and its derived assets.

    Asset name fields hold filenames relative to the video's asset directory.
    A name is only set once the file it refers to has been written.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Video id, also the asset directory name",
    )
    owner_id: str = Field(description="Subject id of the uploading user")
    title: str | None = Field(default=None, max_length=150)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=50)
    tags: list[str] = Field(default_factory=list)
    status: VideoStatus = Field(
        default=VideoStatus.IN_PROGRESS,
        description="Current processing status",
    )
    duration_seconds: float | None = Field(
        default=None,
        ge=0,
        description="Populated once the probe succeeds",
    )

    # Intake facts from the upload receiver
    original_filename: str | None = Field(default=None)
    mime_type: str | None = Field(default=None)
    size_bytes: int | None = Field(default=None, ge=0)

    # Asset names inside the video directory
    original_asset_name: str | None = Field(default=None)
    manifest_name: str | None = Field(default=None)
    static_thumb_name: str | None = Field(default=None)
    animated_thumb_name: str | None = Field(default=None)
    custom_thumb_name: str | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this record was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last update timestamp",
    )

    @property
    def is_ready(self) -> bool:
        """Check if derived assets can be served."""
        return self.status == VideoStatus.UPLOADED

    @property
    def preferred_thumbnail(self) -> str | None:
        """Custom thumbnail if one was set, else the generated one."""
        return self.custom_thumb_name or self.static_thumb_name

    def is_owned_by(self, subject_id: str) -> bool:
        """Check whether ``subject_id`` owns this video."""
        return bool(subject_id) and self.owner_id == subject_id

    def with_metadata(
        self,
        *,
        title: str | None = None,
        description: str | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> Self:
        """Create a new instance with owner-editable fields replaced.

        Fields left as None are kept.
        """
        updates: dict[str, object] = {"updated_at": datetime.now(UTC)}
        if title is not None:
            updates["title"] = title
        if description is not None:
            updates["description"] = description
        if category is not None:
            updates["category"] = category
        if tags is not None:
            updates["tags"] = tags
        return self.model_copy(update=updates)
