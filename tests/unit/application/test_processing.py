"""Unit tests for the video processing pipeline."""

import shutil
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.application.services.jobs import BackgroundJobRunner
from src.application.services.processing import VideoProcessingPipeline
from src.commons.settings.models import CodecSettings, LifecycleSettings
from src.domain.models.video import VideoStatus
from src.infrastructure.storage import AssetStore
from src.infrastructure.video import CodecError, VideoProbe

VIDEO_ID = "3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6b"


async def _write_manifest(input_path, output_dir, video_id, **kwargs):
    (output_dir / f"{video_id}_master.m3u8").write_text("#EXTM3U\n")
    return True


async def _write_frame(input_path, output_path, offset_seconds, cancel_token=None):
    output_path.write_bytes(b"jpeg")
    return True


async def _write_preview(input_path, output_path, **kwargs):
    output_path.write_bytes(b"animated")
    return True


async def _write_webp(source, destination, quality=80):
    destination.write_bytes(b"webp")
    return destination


@pytest.fixture
def assets(tmp_path) -> AssetStore:
    return AssetStore(tmp_path / "videos")


@pytest.fixture
def upload(tmp_path) -> Path:
    path = tmp_path / "incoming" / "upload-123.mp4"
    path.parent.mkdir()
    path.write_bytes(b"source video")
    return path


@pytest.fixture
def records():
    store = AsyncMock()
    store.exists.return_value = True
    store.mark_uploaded.return_value = True
    store.mark_error.return_value = True
    store.set_original_asset.return_value = True
    return store


@pytest.fixture
def codec():
    invoker = AsyncMock()
    invoker.probe.return_value = VideoProbe(
        duration_seconds=12.5,
        has_audio=True,
        width=1920,
        height=1080,
        video_codec="h264",
    )
    invoker.transcode_hls.side_effect = _write_manifest
    invoker.extract_frame.side_effect = _write_frame
    invoker.animated_preview.side_effect = _write_preview
    return invoker


@pytest.fixture
def images():
    converter = AsyncMock()
    converter.to_webp.side_effect = _write_webp
    return converter


@pytest.fixture
def jobs() -> BackgroundJobRunner:
    return BackgroundJobRunner()


@pytest.fixture
def pipeline(records, assets, codec, images, jobs) -> VideoProcessingPipeline:
    return VideoProcessingPipeline(
        records=records,
        assets=assets,
        codec=codec,
        images=images,
        jobs=jobs,
        codec_settings=CodecSettings(),
        lifecycle_settings=LifecycleSettings(
            delete_backoff_seconds=0, orphan_retry_delay_seconds=0
        ),
    )


class TestHappyPath:
    """A probe-able upload ends up fully processed."""

    async def test_marks_uploaded_with_asset_names(self, pipeline, records, upload):
        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.UPLOADED
        records.mark_uploaded.assert_awaited_once_with(
            VIDEO_ID,
            manifest_name=f"{VIDEO_ID}_master.m3u8",
            static_thumb_name=f"{VIDEO_ID}.webp",
            animated_thumb_name=f"{VIDEO_ID}_animated.webp",
            custom_thumb_name=None,
            duration_seconds=12.5,
        )
        records.mark_error.assert_not_called()

    async def test_writes_assets_and_moves_original(
        self, pipeline, records, assets, upload
    ):
        await pipeline.process(VIDEO_ID, upload)

        written = sorted(p.name for p in assets.directory(VIDEO_ID).iterdir())
        assert written == sorted(
            [
                f"{VIDEO_ID}.webp",
                f"{VIDEO_ID}_animated.webp",
                f"{VIDEO_ID}_master.m3u8",
                f"{VIDEO_ID}_original.mp4",
            ]
        )
        assert not upload.exists()
        records.set_original_asset.assert_awaited_once_with(
            VIDEO_ID, f"{VIDEO_ID}_original.mp4"
        )

    async def test_passes_audio_flag_and_duration(self, pipeline, codec, upload):
        codec.probe.return_value = VideoProbe(
            duration_seconds=8.0, has_audio=False, width=640, height=360, video_codec="vp9"
        )

        await pipeline.process(VIDEO_ID, upload)

        kwargs = codec.transcode_hls.call_args.kwargs
        assert kwargs["has_audio"] is False
        assert kwargs["duration_seconds"] == 8.0

    async def test_thumbnail_frame_offset(self, pipeline, codec, upload):
        await pipeline.process(VIDEO_ID, upload)

        assert codec.extract_frame.call_args[0][2] == 4.0

    async def test_short_video_grabs_middle_frame(self, pipeline, codec, upload):
        codec.probe.return_value = VideoProbe(
            duration_seconds=3.0, has_audio=True, width=1280, height=720, video_codec="h264"
        )

        await pipeline.process(VIDEO_ID, upload)

        assert codec.extract_frame.call_args[0][2] == 1.5

    async def test_existing_outputs_are_not_regenerated(
        self, pipeline, codec, assets, upload
    ):
        directory = assets.ensure_directory(VIDEO_ID)
        (directory / f"{VIDEO_ID}_master.m3u8").write_text("#EXTM3U\n")
        (directory / f"{VIDEO_ID}_animated.webp").write_bytes(b"old")

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.UPLOADED
        codec.transcode_hls.assert_not_called()
        codec.animated_preview.assert_not_called()

    async def test_token_released_after_run(self, pipeline, jobs, upload):
        await pipeline.process(VIDEO_ID, upload)

        assert jobs.cancel(VIDEO_ID) is False


class TestCustomThumbnail:
    """A thumbnail supplied at upload replaces the generated one."""

    async def test_custom_thumbnail_skips_frame_grab(
        self, pipeline, records, codec, images, assets, upload, tmp_path
    ):
        thumb = tmp_path / "incoming" / "thumb-upload.png"
        thumb.write_bytes(b"png")

        outcome = await pipeline.process(VIDEO_ID, upload, thumb)

        assert outcome == VideoStatus.UPLOADED
        codec.extract_frame.assert_not_called()
        source, destination = images.to_webp.call_args[0][:2]
        assert source == thumb
        assert destination.name == f"{VIDEO_ID}_custom.webp"
        kwargs = records.mark_uploaded.call_args.kwargs
        assert kwargs["static_thumb_name"] is None
        assert kwargs["custom_thumb_name"] == f"{VIDEO_ID}_custom.webp"

    async def test_temporary_thumbnail_deleted(self, pipeline, upload, tmp_path):
        thumb = tmp_path / "incoming" / "thumb-upload.png"
        thumb.write_bytes(b"png")

        await pipeline.process(VIDEO_ID, upload, thumb)

        assert not thumb.exists()


class TestFailures:
    """Failures move the record to error; deletions stop quietly."""

    async def test_probe_failure_marks_error(self, pipeline, records, codec, assets, upload):
        codec.probe.side_effect = CodecError("ffprobe", 1, "Invalid data found")

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.ERROR
        records.mark_error.assert_awaited_once_with(VIDEO_ID)
        records.mark_uploaded.assert_not_called()
        assert not assets.directory_exists(VIDEO_ID)
        assert not upload.exists()

    async def test_transcode_failure_keeps_original(
        self, pipeline, records, codec, assets, upload
    ):
        codec.transcode_hls.side_effect = CodecError("ffmpeg", 1, "encoder error")

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.ERROR
        assert assets.asset_exists(VIDEO_ID, f"{VIDEO_ID}_original.mp4")
        records.set_original_asset.assert_awaited_once()

    async def test_error_not_reported_when_already_finished(
        self, pipeline, records, codec, upload
    ):
        codec.animated_preview.side_effect = CodecError("ffmpeg", 1)
        records.mark_error.return_value = False

        assert await pipeline.process(VIDEO_ID, upload) is None

    async def test_missing_record_skips_processing(
        self, pipeline, records, codec, assets, upload
    ):
        records.exists.return_value = False

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome is None
        codec.probe.assert_not_called()
        assert not assets.directory_exists(VIDEO_ID)
        assert not upload.exists()

    async def test_deleted_during_transcode(
        self, pipeline, records, codec, assets, upload
    ):
        async def deleted_midway(input_path, output_dir, video_id, **kwargs):
            shutil.rmtree(output_dir)
            return False

        codec.transcode_hls.side_effect = deleted_midway

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome is None
        records.mark_uploaded.assert_not_called()
        records.mark_error.assert_not_called()
        codec.animated_preview.assert_not_called()
        assert not upload.exists()

    async def test_failure_after_deletion_is_not_an_error(
        self, pipeline, records, codec, upload
    ):
        codec.probe.side_effect = CodecError("ffprobe", 1)
        records.exists.side_effect = [True, False]

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome is None
        records.mark_error.assert_not_called()

    async def test_record_deleted_before_finalize_reclaims_directory(
        self, pipeline, records, assets, upload
    ):
        records.mark_uploaded.return_value = False
        records.exists.side_effect = [True, True, False]

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome is None
        assert not assets.directory_exists(VIDEO_ID)
        assert not upload.exists()

    async def test_record_no_longer_in_progress(self, pipeline, records, assets, upload):
        records.mark_uploaded.return_value = False

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome is None
        assert assets.directory_exists(VIDEO_ID)

    async def test_frame_grab_without_output_marks_error(
        self, pipeline, records, codec, upload
    ):
        async def no_frame(input_path, output_path, offset_seconds, cancel_token=None):
            return True

        codec.extract_frame.side_effect = no_frame

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.ERROR
        codec.transcode_hls.assert_not_called()

    async def test_missing_preview_is_not_recorded(
        self, pipeline, records, codec, assets, upload
    ):
        async def no_preview(input_path, output_path, **kwargs):
            return True

        codec.animated_preview.side_effect = no_preview

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.UPLOADED
        assert not assets.asset_exists(VIDEO_ID, f"{VIDEO_ID}_animated.webp")
        kwargs = records.mark_uploaded.call_args.kwargs
        assert kwargs["animated_thumb_name"] is None
        assert kwargs["static_thumb_name"] == f"{VIDEO_ID}.webp"

    async def test_transcode_without_manifest_marks_error(
        self, pipeline, records, codec, upload
    ):
        async def no_manifest(input_path, output_dir, video_id, **kwargs):
            return True

        codec.transcode_hls.side_effect = no_manifest

        outcome = await pipeline.process(VIDEO_ID, upload)

        assert outcome == VideoStatus.ERROR
        records.mark_uploaded.assert_not_called()
