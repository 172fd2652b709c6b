"""Video use cases behind the HTTP delivery layer."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from src.application.dtos.videos import VideoMetadataInput
from src.application.services.jobs import BackgroundJobRunner
from src.application.services.lifecycle import VideoDeletionManager
from src.application.services.processing import VideoProcessingPipeline
from src.application.services.storage import VideoRecordStore
from src.application.services.thumbnails import CustomThumbnailService
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    AssetNotFoundException,
    VideoAccessDeniedException,
    VideoNotFoundException,
    VideoNotReadyException,
)
from src.domain.models.video import Video
from src.infrastructure.signing import SignedToken, SignedUrlAuthority
from src.infrastructure.storage import AssetPathError, AssetStore


@dataclass
class StoredUpload:
    """A multipart file already written to local disk."""

    path: Path
    original_filename: str
    content_type: str | None
    size_bytes: int


class VideoService:
    """Coordinates records, assets, background jobs and signing.

    Every lookup on behalf of a requester checks ownership. Derived assets
    are only exposed once the video is ``uploaded``.
    """

    def __init__(
        self,
        records: VideoRecordStore,
        assets: AssetStore,
        jobs: BackgroundJobRunner,
        pipeline: VideoProcessingPipeline,
        thumbnails: CustomThumbnailService,
        deletion: VideoDeletionManager,
        signer: SignedUrlAuthority,
    ) -> None:
        self._records = records
        self._assets = assets
        self._jobs = jobs
        self._pipeline = pipeline
        self._thumbnails = thumbnails
        self._deletion = deletion
        self._signer = signer
        self._logger = get_logger(__name__)

    async def create(
        self,
        owner_id: str,
        upload: StoredUpload,
        metadata: VideoMetadataInput,
        thumbnail: StoredUpload | None = None,
    ) -> Video:
        """Record a new upload and start processing it in the background."""
        video = Video(
            owner_id=owner_id,
            title=metadata.title,
            description=metadata.description,
            category=metadata.category,
            tags=metadata.tags or [],
            original_filename=upload.original_filename,
            mime_type=upload.content_type,
            size_bytes=upload.size_bytes,
        )
        await self._records.create(video)

        self._jobs.spawn(
            f"process-{video.id}",
            self._pipeline.process(
                video.id,
                upload.path,
                thumbnail.path if thumbnail is not None else None,
            ),
            video_id=video.id,
        )
        self._logger.info(
            "Upload accepted",
            extra={
                "video_id": video.id,
                "size_bytes": upload.size_bytes,
                "custom_thumbnail": thumbnail is not None,
            },
        )
        return video

    async def get_owned(self, video_id: str, subject_id: str) -> Video:
        """Load a video and check that ``subject_id`` owns it.

        Raises:
            VideoNotFoundException: If no such video exists.
            VideoAccessDeniedException: If it belongs to someone else.
        """
        video = await self._records.get(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        if not video.is_owned_by(subject_id):
            raise VideoAccessDeniedException(video_id)
        return video

    async def get_ready(self, video_id: str, subject_id: str) -> Video:
        """Like ``get_owned`` but also requires processing to be finished.

        Raises:
            VideoNotReadyException: If the video is not ``uploaded``.
        """
        video = await self.get_owned(video_id, subject_id)
        if not video.is_ready:
            raise VideoNotReadyException(video_id, video.status)
        return video

    async def list_for_owner(
        self,
        owner_id: str,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Video], int]:
        videos = await self._records.list_for_owner(owner_id, skip=skip, limit=limit)
        total = await self._records.count_for_owner(owner_id)
        return videos, total

    async def update_metadata(
        self,
        video_id: str,
        subject_id: str,
        metadata: VideoMetadataInput,
    ) -> Video:
        """Apply owner edits to title, description, category and tags."""
        video = await self.get_owned(video_id, subject_id)
        changes: dict[str, Any] = metadata.changes()
        if not await self._records.update_metadata(video_id, changes):
            raise VideoNotFoundException(video_id)
        return video.with_metadata(**changes)

    async def delete(self, video_id: str, subject_id: str) -> None:
        await self._deletion.delete(video_id, subject_id)

    async def replace_thumbnail(
        self,
        video_id: str,
        subject_id: str,
        thumbnail: StoredUpload,
    ) -> None:
        """Queue conversion of a new custom thumbnail.

        The temporary file is removed here if the request is refused, and
        by the background job otherwise.
        """
        try:
            await self.get_owned(video_id, subject_id)
        except Exception:
            thumbnail.path.unlink(missing_ok=True)
            raise

        self._jobs.spawn(
            f"thumbnail-{video_id}",
            self._thumbnails.replace(video_id, thumbnail.path),
            video_id=video_id,
        )

    async def issue_signed_url(
        self,
        video_id: str,
        subject_id: str,
        ttl_minutes: int | None = None,
    ) -> SignedToken:
        """Sign streaming access to a video for its owner."""
        await self.get_owned(video_id, subject_id)
        return self._signer.issue(video_id, subject_id, ttl_minutes)

    def asset_path(self, video: Video, name: str | None) -> Path:
        """Resolve an asset of ``video`` that must exist on disk.

        Raises:
            AssetNotFoundException: If the name is unset, unsafe or missing.
        """
        if not name:
            raise AssetNotFoundException(video.id, "<unset>")
        try:
            path = self._assets.path_for(video.id, name)
        except AssetPathError as e:
            raise AssetNotFoundException(video.id, name) from e
        if not path.is_file():
            raise AssetNotFoundException(video.id, name)
        return path
