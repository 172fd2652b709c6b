"""Video deletion and asset directory reclamation."""

import asyncio
import errno
import shutil
from pathlib import Path

from src.application.services.jobs import BackgroundJobRunner
from src.application.services.storage import VideoRecordStore
from src.commons.settings.models import LifecycleSettings
from src.commons.telemetry import get_logger
from src.domain.exceptions import VideoAccessDeniedException, VideoNotFoundException
from src.infrastructure.storage import AssetStore

logger = get_logger(__name__)

# Errors that mean "someone is still writing in there, try again".
RETRYABLE_ERRNOS = frozenset({errno.EBUSY, errno.ENOTEMPTY, errno.EEXIST})


async def remove_directory(
    directory: Path,
    max_attempts: int = 10,
    backoff_seconds: float = 1.0,
) -> bool:
    """Remove a directory tree with bounded retries.

    A missing directory counts as removed. Busy or non-empty errors, and a
    directory that reappears after removal, are retried. Any other OS error
    stops the attempts.

    Returns:
        True if the directory is gone, False if removal gave up.
    """
    loop = asyncio.get_event_loop()
    for attempt in range(1, max_attempts + 1):
        try:
            await loop.run_in_executor(None, shutil.rmtree, directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            if e.errno not in RETRYABLE_ERRNOS:
                logger.error(f"Could not remove {directory}: {e}")
                return False
            logger.debug(
                f"Directory {directory.name} busy, retrying",
                extra={"attempt": attempt, "error": str(e)},
            )
        else:
            if not directory.exists():
                logger.info(f"Removed asset directory {directory.name}")
                return True

        if not directory.exists():
            return True
        if attempt < max_attempts:
            await asyncio.sleep(backoff_seconds)

    logger.error(
        f"Giving up removing {directory} after {max_attempts} attempts",
    )
    return False


class VideoDeletionManager:
    """Deletes video records and reclaims their asset directories.

    The record goes synchronously. The directory is removed by a background
    job, so it may outlive the record briefly. In-flight processing watches
    the directory and stops once it is gone.
    """

    def __init__(
        self,
        records: VideoRecordStore,
        assets: AssetStore,
        jobs: BackgroundJobRunner,
        settings: LifecycleSettings,
    ) -> None:
        self._records = records
        self._assets = assets
        self._jobs = jobs
        self._settings = settings

    async def delete(self, video_id: str, subject_id: str) -> None:
        """Delete a video owned by ``subject_id``.

        Raises:
            VideoNotFoundException: If the video does not exist.
            VideoAccessDeniedException: If the requester is not the owner.
        """
        video = await self._records.get(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        if not video.is_owned_by(subject_id):
            raise VideoAccessDeniedException(video_id)

        if not await self._records.delete(video_id):
            raise VideoNotFoundException(video_id)

        if self._jobs.cancel(video_id):
            logger.info("Signalled in-flight processing", extra={"video_id": video_id})

        self._jobs.spawn(
            f"reclaim-{video_id}",
            self.reclaim(video_id),
            video_id=video_id,
        )

    async def reclaim(self, video_id: str) -> bool:
        """Remove a video's asset directory with the configured retry policy."""
        return await remove_directory(
            self._assets.directory(video_id),
            max_attempts=self._settings.delete_max_attempts,
            backoff_seconds=self._settings.delete_backoff_seconds,
        )
