"""Custom thumbnail replacement."""

from pathlib import Path

from src.application.services.lifecycle import remove_directory
from src.application.services.storage import VideoRecordStore
from src.commons.settings.models import CodecSettings, LifecycleSettings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import VideoNotFoundException
from src.infrastructure.images import ImageConverterBase
from src.infrastructure.storage import AssetStore

logger = get_logger(__name__)


class CustomThumbnailService:
    """Stores a caller-supplied image as a video's custom thumbnail.

    Runs independently of the processing state machine and overwrites any
    earlier custom thumbnail. Ownership is checked by the caller.
    """

    def __init__(
        self,
        records: VideoRecordStore,
        assets: AssetStore,
        images: ImageConverterBase,
        codec_settings: CodecSettings,
        lifecycle_settings: LifecycleSettings,
    ) -> None:
        self._records = records
        self._assets = assets
        self._images = images
        self._quality = codec_settings.webp_quality
        self._lifecycle = lifecycle_settings

    async def replace(self, video_id: str, source: Path) -> str:
        """Convert ``source`` and record it as the custom thumbnail.

        The temporary ``source`` file is deleted whether or not the
        conversion succeeds.

        Returns:
            The custom thumbnail asset name.

        Raises:
            VideoNotFoundException: If the record no longer exists. A record
                deleted mid-conversion also has its directory removed.
            ImageConversionError: If the image cannot be read.
        """
        with LogContext(video_id=video_id):
            try:
                if not await self._records.exists(video_id):
                    raise VideoNotFoundException(video_id)

                names = self._assets.names(video_id)
                self._assets.ensure_directory(video_id)
                await self._images.to_webp(
                    source,
                    self._assets.path_for(video_id, names.custom_thumb),
                    quality=self._quality,
                )
                if not await self._records.set_custom_thumbnail(
                    video_id, names.custom_thumb
                ):
                    # deleted while converting; the directory may have been recreated
                    logger.warning("Video deleted during thumbnail replacement")
                    await remove_directory(
                        self._assets.directory(video_id),
                        max_attempts=self._lifecycle.delete_max_attempts,
                        backoff_seconds=self._lifecycle.delete_backoff_seconds,
                    )
                    raise VideoNotFoundException(video_id)
                logger.info("Custom thumbnail updated")
                return names.custom_thumb
            finally:
                source.unlink(missing_ok=True)
