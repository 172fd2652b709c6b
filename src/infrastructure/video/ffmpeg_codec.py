"""FFmpeg implementation of the codec invoker."""

import asyncio
import contextlib
import json
from collections import deque
from collections.abc import Callable
from pathlib import Path

from src.commons.telemetry import get_logger, timed
from src.infrastructure.video.base import (
    RENDITIONS,
    CodecError,
    CodecInvokerBase,
    ProgressCallback,
    Rendition,
    VideoProbe,
)
from src.infrastructure.video.cancellation import CancellationToken

logger = get_logger(__name__)

STDERR_TAIL_LINES = 20


async def _read_lines(
    stream: asyncio.StreamReader | None,
    sink: Callable[[str], None] | None,
) -> None:
    """Drain a subprocess pipe line by line."""
    if stream is None:
        return
    async for raw in stream:
        line = raw.decode("utf-8", errors="replace").rstrip()
        if line and sink is not None:
            sink(line)


class _ProgressTracker:
    """Turns ``-progress`` key=value lines into integer percentages."""

    def __init__(
        self,
        duration_seconds: float | None,
        callback: ProgressCallback | None,
    ) -> None:
        self._duration = duration_seconds
        self._callback = callback
        self.last_percent = -1

    def __call__(self, line: str) -> None:
        if self._callback is None or not self._duration:
            return
        key, _, value = line.partition("=")
        if key not in ("out_time_us", "out_time_ms"):
            return
        try:
            # Both keys carry microseconds.
            seconds = int(value) / 1_000_000
        except ValueError:
            return
        percent = max(0, min(100, int(seconds / self._duration * 100)))
        if percent > self.last_percent:
            self.last_percent = percent
            self._callback(percent)


class FFmpegCodecInvoker(CodecInvokerBase):
    """Codec invoker that shells out to ffmpeg and ffprobe.

    Requires ffmpeg (built with libx264, aac and libwebp) and ffprobe to be
    installed. Subprocesses are watched with a poll loop so a cancelled
    token or a cancelled task kills the encoder instead of leaving it
    running after its video has been deleted.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        *,
        poll_interval_seconds: float = 2.0,
        preset: str = "medium",
        segment_seconds: int = 4,
        keyframe_interval: int = 48,
        audio_bitrate: str = "128k",
        renditions: tuple[Rendition, ...] = RENDITIONS,
    ) -> None:
        """Initialize the invoker.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            ffprobe_path: Path to ffprobe executable.
            poll_interval_seconds: How often running calls check for cancellation.
            preset: x264 preset for every rendition.
            segment_seconds: Target HLS segment duration.
            keyframe_interval: GOP size in frames, also the minimum keyframe interval.
            audio_bitrate: AAC bitrate when the input has audio.
            renditions: Quality ladder, highest first.
        """
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._poll_interval = poll_interval_seconds
        self._preset = preset
        self._segment_seconds = segment_seconds
        self._keyframe_interval = keyframe_interval
        self._audio_bitrate = audio_bitrate
        self._renditions = renditions

    async def probe(self, input_path: Path) -> VideoProbe:
        """Read duration and stream layout of a video file."""
        cmd = [
            self._ffprobe,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(input_path),
        ]
        output: list[str] = []
        await self._run("ffprobe", cmd, on_stdout_line=output.append)

        try:
            data = json.loads("\n".join(output) or "{}")
        except json.JSONDecodeError as e:
            raise CodecError("ffprobe", 0, f"unreadable probe output: {e}") from e

        video_stream = None
        has_audio = False
        for stream in data.get("streams", []):
            codec_type = stream.get("codec_type")
            if codec_type == "video" and video_stream is None:
                video_stream = stream
            elif codec_type == "audio":
                has_audio = True

        if video_stream is None:
            raise CodecError("ffprobe", 0, f"no video stream found in {input_path.name}")

        format_info = data.get("format", {})
        raw_duration = format_info.get("duration") or video_stream.get("duration") or 0
        try:
            duration = float(raw_duration)
        except (TypeError, ValueError):
            duration = 0.0

        return VideoProbe(
            duration_seconds=duration,
            has_audio=has_audio,
            width=int(video_stream.get("width", 0)),
            height=int(video_stream.get("height", 0)),
            video_codec=video_stream.get("codec_name", "unknown"),
        )

    def build_hls_command(
        self,
        input_path: Path,
        output_dir: Path,
        video_id: str,
        *,
        has_audio: bool,
    ) -> list[str]:
        """Build the ffmpeg argument list for the adaptive-bitrate encode."""
        count = len(self._renditions)
        split_outputs = "".join(f"[v{i}]" for i in range(count))
        scales = ";".join(
            f"[v{i}]scale=w=-2:h={r.height}[v{i}out]"
            for i, r in enumerate(self._renditions)
        )
        filter_graph = f"[0:v]split={count}{split_outputs};{scales}"

        cmd = [
            self._ffmpeg,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i",
            str(input_path),
            "-filter_complex",
            filter_graph,
        ]

        for i, r in enumerate(self._renditions):
            cmd.extend(
                [
                    "-map",
                    f"[v{i}out]",
                    f"-c:v:{i}",
                    "libx264",
                    f"-b:v:{i}",
                    f"{r.video_bitrate_k}k",
                    f"-maxrate:v:{i}",
                    f"{r.maxrate_k}k",
                    f"-bufsize:v:{i}",
                    f"{r.bufsize_k}k",
                ]
            )

        if has_audio:
            for _ in self._renditions:
                cmd.extend(["-map", "0:a:0"])
            cmd.extend(["-c:a", "aac", "-b:a", self._audio_bitrate])
            stream_map = " ".join(f"v:{i},a:{i}" for i in range(count))
        else:
            stream_map = " ".join(f"v:{i}" for i in range(count))

        cmd.extend(
            [
                "-var_stream_map",
                stream_map,
                "-preset",
                self._preset,
                "-g",
                str(self._keyframe_interval),
                "-keyint_min",
                str(self._keyframe_interval),
                "-sc_threshold",
                "0",
                "-f",
                "hls",
                "-hls_time",
                str(self._segment_seconds),
                "-hls_playlist_type",
                "vod",
                "-hls_flags",
                "independent_segments",
                "-master_pl_name",
                f"{video_id}_master.m3u8",
                "-hls_segment_filename",
                str(output_dir / f"{video_id}_v%v_%03d.ts"),
                "-progress",
                "pipe:1",
                "-nostats",
                str(output_dir / f"{video_id}_stream_%v.m3u8"),
            ]
        )
        return cmd

    @timed(label="transcode_hls")
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
        """Encode every rendition as HLS plus one master playlist."""
        cmd = self.build_hls_command(
            input_path, output_dir, video_id, has_audio=has_audio
        )
        tracker = _ProgressTracker(duration_seconds, on_progress)
        return await self._run(
            "ffmpeg",
            cmd,
            cancel_token=cancel_token,
            on_stdout_line=tracker,
        )

    async def extract_frame(
        self,
        input_path: Path,
        output_path: Path,
        offset_seconds: float,
        cancel_token: CancellationToken | None = None,
    ) -> bool:
        """Write a single frame at ``offset_seconds`` to ``output_path``."""
        cmd = [
            self._ffmpeg,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-ss",
            f"{offset_seconds:.3f}",
            "-i",
            str(input_path),
            "-frames:v",
            "1",
            str(output_path),
        ]
        return await self._run("ffmpeg", cmd, cancel_token=cancel_token)

    @timed(label="animated_preview")
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
        """Write a short looping animated WebP preview to ``output_path``."""
        cmd = [
            self._ffmpeg,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-ss",
            f"{start_seconds:.3f}",
            "-i",
            str(input_path),
            "-vf",
            f"fps={fps},scale={width}:-1:flags=lanczos",
            "-t",
            f"{duration_seconds:.3f}",
            "-loop",
            "0",
            "-an",
            str(output_path),
        ]
        return await self._run("ffmpeg", cmd, cancel_token=cancel_token)

    async def _run(
        self,
        tool: str,
        cmd: list[str],
        *,
        cancel_token: CancellationToken | None = None,
        on_stdout_line: Callable[[str], None] | None = None,
    ) -> bool:
        """Run a subprocess to completion, failure or cancellation.

        Returns:
            True on a zero exit, False if the cancel token tripped.

        Raises:
            CodecError: On a non-zero exit without cancellation.
        """
        logger.debug(f"Starting {tool}", extra={"argv": cmd})
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CodecError(tool, None, f"executable not found: {cmd[0]}") from e

        stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        readers = asyncio.gather(
            _read_lines(proc.stdout, on_stdout_line),
            _read_lines(proc.stderr, stderr_tail.append),
        )
        waiter = asyncio.ensure_future(proc.wait())
        cancelled = False

        try:
            while True:
                done, _ = await asyncio.wait({waiter}, timeout=self._poll_interval)
                if done:
                    break
                if cancel_token is not None and cancel_token.is_cancelled:
                    cancelled = True
                    break
        finally:
            if not waiter.done():
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
            await waiter
            await readers

        if cancelled:
            reason = cancel_token.reason if cancel_token is not None else None
            logger.info(f"{tool} killed: {reason}", extra={"pid": proc.pid})
            return False

        if proc.returncode != 0:
            raise CodecError(tool, proc.returncode, "\n".join(stderr_tail))

        return True
