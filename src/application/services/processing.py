"""Video processing pipeline: probe, thumbnails, HLS transcode, finalize."""

from pathlib import Path

from src.application.services.jobs import BackgroundJobRunner
from src.application.services.lifecycle import remove_directory
from src.application.services.storage import VideoRecordStore
from src.commons.settings.models import CodecSettings, LifecycleSettings
from src.commons.telemetry import LogContext, get_logger, timed
from src.domain.exceptions import ProcessingException
from src.domain.models.video import VideoStatus
from src.infrastructure.images import ImageConverterBase
from src.infrastructure.storage import AssetNames, AssetStore
from src.infrastructure.video import (
    CancellationToken,
    CodecInvokerBase,
    ProgressCallback,
    VideoProbe,
)

logger = get_logger(__name__)


def _progress_logger(step: int = 10) -> ProgressCallback:
    """Log encoder progress every ``step`` percent."""
    last = -step

    def report(percent: int) -> None:
        nonlocal last
        if percent >= last + step or (percent == 100 and last != 100):
            last = percent
            logger.info(f"Transcoding: {percent}%", extra={"progress": percent})

    return report


class VideoProcessingPipeline:
    """Turns an uploaded file into streaming assets.

    Steps run in order: record check, probe, directory setup, thumbnail
    (custom or generated), HLS transcode, animated preview, record update.
    Every step after directory setup first checks that the asset directory
    still exists; a missing directory means the video was deleted, so the
    run stops quietly and leaves the record alone. Outputs that already
    exist are not produced again, so a run can be repeated safely.

    Whatever happens, the original upload ends up either inside the asset
    directory or deleted.
    """

    def __init__(
        self,
        records: VideoRecordStore,
        assets: AssetStore,
        codec: CodecInvokerBase,
        images: ImageConverterBase,
        jobs: BackgroundJobRunner,
        codec_settings: CodecSettings,
        lifecycle_settings: LifecycleSettings,
    ) -> None:
        self._records = records
        self._assets = assets
        self._codec = codec
        self._images = images
        self._jobs = jobs
        self._codec_settings = codec_settings
        self._lifecycle = lifecycle_settings

    @timed(label="process_video")
    async def process(
        self,
        video_id: str,
        upload_path: Path,
        custom_thumbnail_path: Path | None = None,
    ) -> VideoStatus | None:
        """Run the pipeline for one video.

        Args:
            video_id: Id of a record created in ``inProgress``.
            upload_path: Where the upload receiver left the source file.
            custom_thumbnail_path: Optional caller-supplied thumbnail image.

        Returns:
            The status this run wrote, or None if it stopped without
            changing the record.
        """
        token = self._jobs.token_for(video_id, CancellationToken())
        outcome: VideoStatus | None = None

        with LogContext(video_id=video_id):
            logger.info("Processing started")
            try:
                outcome = await self._run(
                    video_id, upload_path, custom_thumbnail_path, token
                )
            except Exception as e:
                if token.is_cancelled or not await self._records.exists(video_id):
                    logger.info(f"Processing stopped, video was deleted: {e}")
                else:
                    logger.exception(f"Processing failed: {e}")
                    if await self._records.mark_error(video_id):
                        outcome = VideoStatus.ERROR
            finally:
                self._jobs.release(video_id, token)
                if custom_thumbnail_path is not None:
                    self._discard_temp(custom_thumbnail_path)
                await self._settle_original(video_id, upload_path)

            logger.info(
                "Processing finished",
                extra={"status": outcome.value if outcome else None},
            )
        return outcome

    async def _run(
        self,
        video_id: str,
        upload_path: Path,
        custom_thumbnail_path: Path | None,
        token: CancellationToken,
    ) -> VideoStatus | None:
        names = self._assets.names(video_id)

        if not await self._records.exists(video_id):
            logger.warning("Video record no longer exists, skipping processing")
            return None

        probe = await self._codec.probe(upload_path)
        logger.info(
            f"Probed {probe.duration_seconds:.2f}s, audio: {probe.has_audio}",
            extra={"width": probe.width, "height": probe.height},
        )
        if token.is_cancelled or not await self._records.exists(video_id):
            logger.info("Video deleted before assets were written")
            return None

        directory = self._assets.ensure_directory(video_id)
        token.watch_directory(directory)

        static_thumb_name: str | None = None
        custom_thumb_name: str | None = None
        if custom_thumbnail_path is not None:
            if self._aborted(token):
                return None
            custom_thumb_name = await self._store_custom_thumbnail(
                names, custom_thumbnail_path
            )
        else:
            static_thumb_name = await self._generate_static_thumbnail(
                names, upload_path, probe, token
            )
            if static_thumb_name is None:
                return None

        if self._aborted(token):
            return None
        if self._assets.asset_exists(video_id, names.manifest):
            logger.info("Manifest already present, skipping transcode")
        else:
            completed = await self._codec.transcode_hls(
                upload_path,
                directory,
                video_id,
                has_audio=probe.has_audio,
                duration_seconds=probe.duration_seconds,
                cancel_token=token,
                on_progress=_progress_logger(),
            )
            if not completed:
                return None
            if not self._assets.asset_exists(video_id, names.manifest):
                raise ProcessingException(
                    video_id, "transcode", "master playlist was not written"
                )

        if self._aborted(token):
            return None
        if self._assets.asset_exists(video_id, names.animated_thumb):
            logger.info("Animated preview already present, skipping")
        else:
            codec = self._codec_settings
            completed = await self._codec.animated_preview(
                upload_path,
                self._assets.path_for(video_id, names.animated_thumb),
                start_seconds=codec.preview_start_seconds,
                duration_seconds=codec.preview_duration_seconds,
                fps=codec.preview_fps,
                width=codec.preview_width,
                cancel_token=token,
            )
            if not completed:
                return None

        animated_thumb_name: str | None = names.animated_thumb
        # clips shorter than the preview start produce no frames
        if not self._assets.asset_exists(video_id, names.animated_thumb):
            logger.warning("Animated preview was not written, continuing without it")
            animated_thumb_name = None

        if self._aborted(token):
            return None
        return await self._finalize(
            video_id,
            names,
            probe,
            static_thumb_name=static_thumb_name,
            animated_thumb_name=animated_thumb_name,
            custom_thumb_name=custom_thumb_name,
        )

    async def _finalize(
        self,
        video_id: str,
        names: AssetNames,
        probe: VideoProbe,
        *,
        static_thumb_name: str | None,
        animated_thumb_name: str | None,
        custom_thumb_name: str | None,
    ) -> VideoStatus | None:
        updated = await self._records.mark_uploaded(
            video_id,
            manifest_name=names.manifest,
            static_thumb_name=static_thumb_name,
            animated_thumb_name=animated_thumb_name,
            custom_thumb_name=custom_thumb_name,
            duration_seconds=probe.duration_seconds,
        )
        if updated:
            logger.info("Video processed successfully")
            return VideoStatus.UPLOADED

        if not await self._records.exists(video_id):
            logger.warning("Video record deleted during processing, reclaiming assets")
            await remove_directory(
                self._assets.directory(video_id),
                max_attempts=self._lifecycle.delete_max_attempts,
                backoff_seconds=self._lifecycle.delete_backoff_seconds,
            )
        else:
            logger.warning("Video is no longer in progress, status left unchanged")
        return None

    async def _generate_static_thumbnail(
        self,
        names: AssetNames,
        upload_path: Path,
        probe: VideoProbe,
        token: CancellationToken,
    ) -> str | None:
        """Grab a frame and encode it as the static WebP thumbnail."""
        video_id = names.video_id
        if self._aborted(token):
            return None

        offset = self._codec_settings.thumbnail_offset_seconds
        if 0 < probe.duration_seconds <= offset:
            offset = probe.duration_seconds / 2

        frame_path = self._assets.path_for(video_id, names.thumb_frame)
        completed = await self._codec.extract_frame(
            upload_path, frame_path, offset, cancel_token=token
        )
        if not completed or self._aborted(token):
            return None
        # ffmpeg exits cleanly without output when the offset is past the end
        if not frame_path.is_file():
            raise ProcessingException(
                video_id, "thumbnail", f"no frame at {offset:.2f}s"
            )

        try:
            await self._images.to_webp(
                frame_path,
                self._assets.path_for(video_id, names.static_thumb),
                quality=self._codec_settings.webp_quality,
            )
        finally:
            frame_path.unlink(missing_ok=True)
        return names.static_thumb

    async def _store_custom_thumbnail(self, names: AssetNames, source: Path) -> str:
        """Encode the caller's thumbnail as the custom WebP thumbnail."""
        await self._images.to_webp(
            source,
            self._assets.path_for(names.video_id, names.custom_thumb),
            quality=self._codec_settings.webp_quality,
        )
        return names.custom_thumb

    async def _settle_original(self, video_id: str, upload_path: Path) -> None:
        """Move the source into the asset directory, or delete it if orphaned."""
        if not upload_path.exists():
            return

        if not self._assets.directory_exists(video_id):
            logger.info("Asset directory gone, deleting orphaned upload")
            await self._assets.discard_upload(
                upload_path, self._lifecycle.orphan_retry_delay_seconds
            )
            return

        try:
            name = await self._assets.move_original(video_id, upload_path)
        except OSError as e:
            if self._assets.directory_exists(video_id):
                logger.error(f"Could not move original into asset directory: {e}")
            else:
                await self._assets.discard_upload(
                    upload_path, self._lifecycle.orphan_retry_delay_seconds
                )
            return

        if not await self._records.set_original_asset(video_id, name):
            logger.info("Video record gone, original left for directory reclamation")

    def _aborted(self, token: CancellationToken) -> bool:
        if token.is_cancelled:
            logger.info(f"Processing aborted: {token.reason}")
            return True
        return False

    @staticmethod
    def _discard_temp(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not delete temporary file {path.name}: {e}")
