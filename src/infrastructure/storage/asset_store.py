"""Filesystem layout for per-video asset directories."""

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path

from src.commons.telemetry import get_logger

logger = get_logger(__name__)


class AssetPathError(ValueError):
    """Raised when an asset name would resolve outside its video directory."""

    def __init__(self, video_id: str, name: str) -> None:
        self.video_id = video_id
        self.name = name
        super().__init__(f"Asset name '{name}' is not allowed for video {video_id}")


@dataclass(frozen=True)
class AssetNames:
    """Deterministic asset filenames for one video id."""

    video_id: str

    @property
    def manifest(self) -> str:
        return f"{self.video_id}_master.m3u8"

    @property
    def static_thumb(self) -> str:
        return f"{self.video_id}.webp"

    @property
    def thumb_frame(self) -> str:
        """Intermediate frame grabbed before WebP encoding."""
        return "thumb.jpg"

    @property
    def animated_thumb(self) -> str:
        return f"{self.video_id}_animated.webp"

    @property
    def custom_thumb(self) -> str:
        return f"{self.video_id}_custom.webp"

    def stream_playlist(self, index: int) -> str:
        return f"{self.video_id}_stream_{index}.m3u8"

    def segment(self, index: int, sequence: int) -> str:
        return f"{self.video_id}_v{index}_{sequence:03d}.ts"

    def original(self, extension: str) -> str:
        ext = extension if not extension or extension.startswith(".") else f".{extension}"
        return f"{self.video_id}_original{ext.lower()}"


class AssetStore:
    """Owns the on-disk layout under the videos root.

    Each video gets ``<root>/<video_id>/`` holding its original file and
    every derived asset. Callers pass ids that were already validated.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def names(self, video_id: str) -> AssetNames:
        return AssetNames(video_id)

    def directory(self, video_id: str) -> Path:
        """Path of the video's asset directory (may not exist)."""
        return self._root / video_id

    def directory_exists(self, video_id: str) -> bool:
        return self.directory(video_id).is_dir()

    def ensure_directory(self, video_id: str) -> Path:
        """Create the asset directory if missing and return it."""
        path = self.directory(video_id)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def path_for(self, video_id: str, name: str) -> Path:
        """Resolve ``name`` inside the video directory.

        Raises:
            AssetPathError: If the name contains separators or escapes the directory.
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
            raise AssetPathError(video_id, name)
        directory = self.directory(video_id).resolve()
        candidate = (directory / name).resolve()
        if candidate.parent != directory:
            raise AssetPathError(video_id, name)
        return candidate

    def asset_exists(self, video_id: str, name: str) -> bool:
        try:
            return self.path_for(video_id, name).is_file()
        except AssetPathError:
            return False

    async def move_original(self, video_id: str, upload_path: Path) -> str:
        """Move the uploaded source into the video directory.

        Returns:
            The original asset name inside the directory.
        """
        name = self.names(video_id).original(upload_path.suffix)
        target = self.directory(video_id) / name
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, shutil.move, str(upload_path), str(target))
        return name

    async def discard_upload(
        self,
        upload_path: Path,
        retry_delay_seconds: float = 1.0,
    ) -> bool:
        """Delete an orphaned upload, retrying once after a delay.

        Returns:
            True if the file is gone, False if both attempts failed.
        """
        for attempt in (1, 2):
            try:
                upload_path.unlink(missing_ok=True)
                return True
            except OSError as e:
                if attempt == 2:
                    logger.error(
                        f"Could not delete orphaned upload {upload_path.name}: {e}"
                    )
                    return False
                logger.warning(
                    f"Deleting orphaned upload {upload_path.name} failed, retrying: {e}"
                )
                await asyncio.sleep(retry_delay_seconds)
        return False
