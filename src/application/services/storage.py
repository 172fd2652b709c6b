"""Video record storage service over the document database."""

from datetime import UTC, datetime
from typing import Any

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import DocumentDBSettings
from src.commons.telemetry import get_logger
from src.domain.models.video import Video, VideoStatus

# Owner-editable fields; everything else is written by the pipeline.
EDITABLE_FIELDS = frozenset({"title", "description", "category", "tags"})


def _now() -> str:
    return datetime.now(UTC).isoformat()


class VideoRecordStore:
    """Typed accessors for Video records.

    Status changes made by the pipeline are conditional on the record still
    being ``inProgress``, so a finished record never changes status again.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        doc_settings: DocumentDBSettings,
    ) -> None:
        """Initialize the record store.

        Args:
            document_db: Document database provider.
            doc_settings: Document database configuration.
        """
        self._doc_db = document_db
        self._collection = doc_settings.collections.videos
        self._logger = get_logger(__name__)

    async def ensure_indexes(self) -> None:
        """Create the indexes used by owner listings."""
        await self._doc_db.create_index(
            self._collection,
            [("owner_id", 1), ("created_at", -1)],
            name="owner_created",
        )
        self._logger.debug("Video indexes ensured")

    async def create(self, video: Video) -> str:
        """Persist a new video record.

        Returns:
            Document ID.
        """
        doc_id = await self._doc_db.insert(
            self._collection,
            video.model_dump(mode="json"),
        )
        self._logger.info(
            "Video record created",
            extra={"video_id": video.id, "owner_id": video.owner_id},
        )
        return doc_id

    async def get(self, video_id: str) -> Video | None:
        """Get a video by id, or None if it does not exist."""
        doc = await self._doc_db.find_by_id(self._collection, video_id)
        if not doc:
            return None
        return Video(**doc)

    async def exists(self, video_id: str) -> bool:
        return await self._doc_db.exists(self._collection, video_id)

    async def list_for_owner(
        self,
        owner_id: str,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Video]:
        """List an owner's videos, newest first."""
        docs = await self._doc_db.find(
            self._collection,
            {"owner_id": owner_id},
            skip=skip,
            limit=limit,
            sort=[("created_at", -1)],
        )
        return [Video(**doc) for doc in docs]

    async def count_for_owner(self, owner_id: str) -> int:
        return await self._doc_db.count(self._collection, {"owner_id": owner_id})

    async def update_metadata(self, video_id: str, changes: dict[str, Any]) -> bool:
        """Apply owner edits to title, description, category and tags.

        Raises:
            ValueError: If ``changes`` names any other field.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not editable: {sorted(unknown)}")
        if not changes:
            return await self.exists(video_id)
        return await self._doc_db.update(
            self._collection,
            video_id,
            {**changes, "updated_at": _now()},
        )

    async def mark_uploaded(
        self,
        video_id: str,
        *,
        manifest_name: str,
        static_thumb_name: str | None,
        animated_thumb_name: str | None,
        custom_thumb_name: str | None,
        duration_seconds: float,
    ) -> bool:
        """Record finished assets and move the video to ``uploaded``.

        Optional names left as None are not written.

        Returns:
            True if the record was still in progress and got updated.
        """
        updates: dict[str, Any] = {
            "manifest_name": manifest_name,
            "duration_seconds": duration_seconds,
            "status": VideoStatus.UPLOADED.value,
            "updated_at": _now(),
        }
        if static_thumb_name is not None:
            updates["static_thumb_name"] = static_thumb_name
        if animated_thumb_name is not None:
            updates["animated_thumb_name"] = animated_thumb_name
        if custom_thumb_name is not None:
            updates["custom_thumb_name"] = custom_thumb_name
        return await self._doc_db.update_where(
            self._collection,
            video_id,
            {"status": VideoStatus.IN_PROGRESS.value},
            updates,
        )

    async def mark_error(self, video_id: str) -> bool:
        """Move an in-progress video to ``error``."""
        return await self._doc_db.update_where(
            self._collection,
            video_id,
            {"status": VideoStatus.IN_PROGRESS.value},
            {"status": VideoStatus.ERROR.value, "updated_at": _now()},
        )

    async def set_original_asset(self, video_id: str, asset_name: str) -> bool:
        return await self._doc_db.update(
            self._collection,
            video_id,
            {"original_asset_name": asset_name, "updated_at": _now()},
        )

    async def set_custom_thumbnail(self, video_id: str, asset_name: str) -> bool:
        return await self._doc_db.update(
            self._collection,
            video_id,
            {"custom_thumb_name": asset_name, "updated_at": _now()},
        )

    async def delete(self, video_id: str) -> bool:
        """Delete a video record.

        Returns:
            True if deleted, False if not found.
        """
        deleted = await self._doc_db.delete(self._collection, video_id)
        if deleted:
            self._logger.info("Video record deleted", extra={"video_id": video_id})
        return deleted
