"""Abstract base classes for video codec operations."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from src.infrastructure.video.cancellation import CancellationToken

ProgressCallback = Callable[[int], None]


@dataclass
class VideoProbe:
    """Facts about an input file reported by the probe."""

    duration_seconds: float
    has_audio: bool
    width: int
    height: int
    video_codec: str


@dataclass(frozen=True)
class Rendition:
    """One fixed-quality encoding in the adaptive-bitrate ladder."""

    height: int
    video_bitrate_k: int
    maxrate_k: int
    bufsize_k: int

    @property
    def label(self) -> str:
        return f"{self.height}p"


# Highest quality first; stream index %v follows this order.
RENDITIONS: tuple[Rendition, ...] = (
    Rendition(height=1080, video_bitrate_k=5000, maxrate_k=5350, bufsize_k=10000),
    Rendition(height=720, video_bitrate_k=2800, maxrate_k=2996, bufsize_k=5600),
    Rendition(height=480, video_bitrate_k=1400, maxrate_k=1498, bufsize_k=2800),
    Rendition(height=360, video_bitrate_k=800, maxrate_k=856, bufsize_k=1600),
)


class CodecError(Exception):
    """Raised when the codec tool exits unsuccessfully."""

    def __init__(self, tool: str, returncode: int | None, stderr_tail: str = "") -> None:
        self.tool = tool
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        detail = f": {stderr_tail}" if stderr_tail else ""
        super().__init__(f"{tool} failed with exit code {returncode}{detail}")


class CodecInvokerBase(ABC):
    """Abstract base class for the external video codec tool.

    Long-running calls accept a cancellation token. A cancelled call kills
    its subprocess and returns False instead of raising.
    """

    @abstractmethod
    async def probe(self, input_path: Path) -> VideoProbe:
        """Read duration and stream layout of a video file.

        Raises:
            CodecError: If the file cannot be probed or has no video stream.
        """

    @abstractmethod
    async def transcode_hls(
        self,
        input_path: Path,
        output_dir: Path,
        video_id: str,
        *,
        has_audio: bool,
        duration_seconds: float | None = None,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> bool:
        """Encode every rendition as HLS plus one master playlist.

        Args:
            input_path: Source video.
            output_dir: Video asset directory.
            video_id: Prefix for every output name.
            has_audio: Map and encode audio only when True.
            duration_seconds: Source duration, used for progress percentages.
            cancel_token: Polled while the encoder runs.
            on_progress: Called with an integer percentage as it increases.

        Returns:
            True if the encode completed, False if it was cancelled.
        """

    @abstractmethod
    async def extract_frame(
        self,
        input_path: Path,
        output_path: Path,
        offset_seconds: float,
        cancel_token: CancellationToken | None = None,
    ) -> bool:
        """Write a single frame at ``offset_seconds`` to ``output_path``."""

    @abstractmethod
    async def animated_preview(
        self,
        input_path: Path,
        output_path: Path,
        *,
        start_seconds: float,
        duration_seconds: float,
        fps: int,
        width: int,
        cancel_token: CancellationToken | None = None,
    ) -> bool:
        """Write a short looping animated preview to ``output_path``."""
