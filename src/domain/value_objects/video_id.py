"""Video ID value object."""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, Field, ValidationError, field_validator

from src.domain.exceptions import InvalidVideoIdException

# Canonical lowercase or uppercase UUID, hyphenated
VIDEO_ID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class VideoId(BaseModel):
    """Value object representing a validated video id.

    Video ids name directories on disk, so they are validated before any
    path is derived from them.

    Examples:
        >>> vid = VideoId.parse("3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6b")
        >>> str(vid)
        '3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6b'
    """

    value: Annotated[
        str,
        Field(
            min_length=36,
            max_length=36,
            description="UUID string",
        ),
    ]

    @field_validator("value")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate that the value is a hyphenated UUID."""
        if not VIDEO_ID_PATTERN.match(v):
            msg = f"Invalid video id format: '{v}'. Must be a UUID."
            raise ValueError(msg)
        return v.lower()

    @classmethod
    def parse(cls, raw: str) -> VideoId:
        """Build a VideoId from untrusted input.

        Raises:
            InvalidVideoIdException: If the value is not a UUID.
        """
        if not raw or not isinstance(raw, str):
            raise InvalidVideoIdException(str(raw))
        try:
            return cls(value=raw.strip())
        except ValidationError as e:
            raise InvalidVideoIdException(raw) from e

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VideoId):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return False
