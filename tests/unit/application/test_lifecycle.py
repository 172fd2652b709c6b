"""Unit tests for video deletion and directory reclamation."""

import errno
import shutil
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.application.services.lifecycle import VideoDeletionManager, remove_directory
from src.commons.settings.models import LifecycleSettings
from src.domain.exceptions import VideoAccessDeniedException, VideoNotFoundException
from src.domain.models.video import Video
from src.infrastructure.storage import AssetStore

VIDEO_ID = "3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6b"

RMTREE = "src.application.services.lifecycle.shutil.rmtree"


def _populated_dir(tmp_path):
    directory = tmp_path / VIDEO_ID
    directory.mkdir()
    (directory / "seg.ts").write_bytes(b"x")
    return directory


class TestRemoveDirectory:
    """Tests for the bounded-retry directory removal."""

    async def test_removes_tree(self, tmp_path):
        directory = _populated_dir(tmp_path)

        assert await remove_directory(directory, backoff_seconds=0) is True
        assert not directory.exists()

    async def test_missing_directory_is_success(self, tmp_path):
        assert await remove_directory(tmp_path / "never", backoff_seconds=0) is True

    async def test_retries_busy_directory(self, tmp_path):
        directory = _populated_dir(tmp_path)
        real_rmtree = shutil.rmtree
        calls = []

        def flaky(path, *args, **kwargs):
            calls.append(path)
            if len(calls) < 3:
                raise OSError(errno.EBUSY, "Device or resource busy")
            real_rmtree(path)

        with patch(RMTREE, side_effect=flaky):
            assert await remove_directory(directory, backoff_seconds=0) is True

        assert len(calls) == 3
        assert not directory.exists()

    async def test_retries_when_directory_reappears(self, tmp_path):
        directory = _populated_dir(tmp_path)
        real_rmtree = shutil.rmtree
        calls = []

        def racing_writer(path, *args, **kwargs):
            calls.append(path)
            real_rmtree(path)
            if len(calls) == 1:
                directory.mkdir()

        with patch(RMTREE, side_effect=racing_writer):
            assert await remove_directory(directory, backoff_seconds=0) is True

        assert len(calls) == 2

    async def test_gives_up_after_max_attempts(self, tmp_path):
        directory = _populated_dir(tmp_path)

        with patch(
            RMTREE, side_effect=OSError(errno.ENOTEMPTY, "Directory not empty")
        ) as rmtree:
            result = await remove_directory(
                directory, max_attempts=4, backoff_seconds=0
            )

        assert result is False
        assert rmtree.call_count == 4
        assert directory.exists()

    async def test_other_errors_stop_immediately(self, tmp_path):
        directory = _populated_dir(tmp_path)

        with patch(
            RMTREE, side_effect=OSError(errno.EACCES, "Permission denied")
        ) as rmtree:
            assert await remove_directory(directory, backoff_seconds=0) is False

        assert rmtree.call_count == 1


@pytest.fixture
def records():
    return AsyncMock()


@pytest.fixture
def jobs():
    runner = MagicMock()
    runner.cancel.return_value = False
    return runner


@pytest.fixture
def manager(records, jobs, tmp_path) -> VideoDeletionManager:
    return VideoDeletionManager(
        records=records,
        assets=AssetStore(tmp_path),
        jobs=jobs,
        settings=LifecycleSettings(delete_max_attempts=3, delete_backoff_seconds=0),
    )


class TestVideoDeletionManager:
    """Tests for owner-initiated deletion."""

    async def test_delete_removes_record_and_schedules_reclaim(
        self, manager, records, jobs
    ):
        records.get.return_value = Video(id=VIDEO_ID, owner_id="user-1")
        records.delete.return_value = True

        await manager.delete(VIDEO_ID, "user-1")

        records.delete.assert_awaited_once_with(VIDEO_ID)
        jobs.cancel.assert_called_once_with(VIDEO_ID)
        name, coro = jobs.spawn.call_args[0]
        assert name == f"reclaim-{VIDEO_ID}"
        coro.close()

    async def test_delete_unknown_video(self, manager, records, jobs):
        records.get.return_value = None

        with pytest.raises(VideoNotFoundException):
            await manager.delete(VIDEO_ID, "user-1")

        records.delete.assert_not_called()
        jobs.spawn.assert_not_called()

    async def test_delete_by_non_owner(self, manager, records, jobs):
        records.get.return_value = Video(id=VIDEO_ID, owner_id="user-1")

        with pytest.raises(VideoAccessDeniedException):
            await manager.delete(VIDEO_ID, "user-2")

        records.delete.assert_not_called()
        jobs.cancel.assert_not_called()

    async def test_delete_race_with_other_delete(self, manager, records, jobs):
        records.get.return_value = Video(id=VIDEO_ID, owner_id="user-1")
        records.delete.return_value = False

        with pytest.raises(VideoNotFoundException):
            await manager.delete(VIDEO_ID, "user-1")

        jobs.spawn.assert_not_called()

    async def test_reclaim_removes_directory(self, manager, tmp_path):
        directory = _populated_dir(tmp_path)

        assert await manager.reclaim(VIDEO_ID) is True
        assert not directory.exists()
