"""Media delivery endpoints: thumbnails, HLS streaming and downloads."""

import asyncio
import re
from collections.abc import Iterator
from functools import partial
from pathlib import Path
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Request, status
from fastapi.responses import FileResponse, PlainTextResponse, StreamingResponse
from starlette.responses import Response

from src.api.dependencies import VideoIdDep, VideoServiceDep
from src.api.middleware.error_handler import APIError
from src.api.security import CurrentSubjectDep, SignedSubjectDep
from src.commons.telemetry import get_logger
from src.domain.exceptions import AssetNotFoundException

logger = get_logger(__name__)

router = APIRouter()

PLAYLIST_MEDIA_TYPE = "application/vnd.apple.mpegurl"
SEGMENT_MEDIA_TYPE = "video/MP2T"
WEBP_MEDIA_TYPE = "image/webp"

STREAM_MEDIA_TYPES = {
    ".m3u8": PLAYLIST_MEDIA_TYPE,
    ".ts": SEGMENT_MEDIA_TYPE,
}

DOWNLOAD_CHUNK_BYTES = 1024 * 1024

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")


class RangeNotSatisfiable(ValueError):
    """The requested byte range lies outside the file."""


def parse_range(header: str, size: int) -> tuple[int, int] | None:
    """Parse a single ``bytes=`` range into inclusive offsets.

    Supports ``start-end``, open-ended ``start-`` and suffix ``-length``
    forms. Returns None for headers that are not a single byte range,
    which callers treat as a request for the whole file.

    Raises:
        RangeNotSatisfiable: If the range cannot be served for ``size``.
    """
    match = _RANGE_RE.match(header.strip())
    if match is None:
        return None
    start_s, end_s = match.groups()
    if not start_s and not end_s:
        return None

    if not start_s:
        length = int(end_s)
        if length == 0 or size == 0:
            raise RangeNotSatisfiable(header)
        return max(size - length, 0), size - 1

    start = int(start_s)
    end = int(end_s) if end_s else size - 1
    if start >= size or start > end:
        raise RangeNotSatisfiable(header)
    return start, min(end, size - 1)


def _file_chunks(path: Path, start: int, end: int) -> Iterator[bytes]:
    with open(path, "rb") as f:
        f.seek(start)
        remaining = end - start + 1
        while remaining > 0:
            data = f.read(min(DOWNLOAD_CHUNK_BYTES, remaining))
            if not data:
                break
            remaining -= len(data)
            yield data


def _content_disposition(title: str | None, fallback: str, suffix: str) -> str:
    name = f"{title or fallback}{suffix}"
    ascii_name = name.encode("ascii", "ignore").decode().replace('"', "") or fallback
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name)}"


def sign_playlist(text: str, query: str, prefix: str = "") -> str:
    """Append ``query`` to every URI line of an HLS playlist.

    ``prefix`` is put in front of each URI, for playlists served from a
    URL that is not the directory the URIs are relative to.
    """
    lines = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            separator = "&" if "?" in stripped else "?"
            line = f"{prefix}{stripped}{separator}{query}"
        lines.append(line)
    return "\n".join(lines) + "\n"


def _signing_query(request: Request) -> str:
    params = request.query_params
    return urlencode(
        {
            "expires": params.get("expires", ""),
            "signature": params.get("signature", ""),
            "uid": params.get("uid", ""),
        }
    )


async def _read_playlist(path: Path) -> str:
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, partial(path.read_text, encoding="utf-8"))


@router.get(
    "/videos/thumb/static/{video_id}",
    summary="Get video thumbnail",
    description="The custom thumbnail when one is set, else the static frame.",
    response_class=FileResponse,
)
async def get_static_thumbnail(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> FileResponse:
    video = await service.get_ready(video_id, subject)
    path = service.asset_path(video, video.preferred_thumbnail)
    return FileResponse(path, media_type=WEBP_MEDIA_TYPE)


@router.get(
    "/videos/thumb/animated/{video_id}",
    summary="Get animated preview",
    response_class=FileResponse,
)
async def get_animated_thumbnail(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> FileResponse:
    video = await service.get_ready(video_id, subject)
    path = service.asset_path(video, video.animated_thumb_name)
    return FileResponse(path, media_type=WEBP_MEDIA_TYPE)


@router.get(
    "/videos/thumb/signed/{video_id}",
    summary="Get thumbnail via signed URL",
    response_class=FileResponse,
)
async def get_signed_thumbnail(
    video_id: VideoIdDep,
    subject: SignedSubjectDep,
    service: VideoServiceDep,
) -> FileResponse:
    video = await service.get_ready(video_id, subject)
    path = service.asset_path(video, video.preferred_thumbnail)
    return FileResponse(path, media_type=WEBP_MEDIA_TYPE)


@router.get(
    "/videos/stream/{video_id}",
    summary="Get master playlist",
    description="Serve the HLS master playlist with signed rendition URIs.",
    response_class=PlainTextResponse,
)
async def get_master_playlist(
    request: Request,
    video_id: VideoIdDep,
    subject: SignedSubjectDep,
    service: VideoServiceDep,
) -> Response:
    """Serve the master playlist.

    Rendition URIs are prefixed with the video id because this URL has no
    trailing directory component for relative resolution.
    """
    video = await service.get_ready(video_id, subject)
    path = service.asset_path(video, video.manifest_name)
    body = sign_playlist(
        await _read_playlist(path),
        _signing_query(request),
        prefix=f"{video_id}/",
    )
    return Response(content=body, media_type=PLAYLIST_MEDIA_TYPE)


@router.get(
    "/videos/stream/{video_id}/{file_name}",
    summary="Get rendition playlist or segment",
)
async def get_stream_file(
    request: Request,
    video_id: VideoIdDep,
    file_name: str,
    subject: SignedSubjectDep,
    service: VideoServiceDep,
) -> Response:
    """Serve a rendition playlist (signed) or a transport stream segment."""
    video = await service.get_ready(video_id, subject)
    media_type = STREAM_MEDIA_TYPES.get(Path(file_name).suffix.lower())
    if media_type is None:
        raise AssetNotFoundException(video_id, file_name)
    path = service.asset_path(video, file_name)

    if media_type == PLAYLIST_MEDIA_TYPE:
        body = sign_playlist(await _read_playlist(path), _signing_query(request))
        return Response(content=body, media_type=PLAYLIST_MEDIA_TYPE)
    return FileResponse(path, media_type=SEGMENT_MEDIA_TYPE)


@router.get(
    "/videos/download/{video_id}",
    summary="Download original video",
    description="Download the original upload. Honors single byte ranges.",
)
async def download_video(
    request: Request,
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> StreamingResponse:
    """Stream the original file, partially when a Range header is sent."""
    video = await service.get_ready(video_id, subject)
    path = service.asset_path(video, video.original_asset_name)
    size = path.stat().st_size
    media_type = video.mime_type or "application/octet-stream"
    headers = {
        "Accept-Ranges": "bytes",
        "Content-Disposition": _content_disposition(
            video.title, video.id, path.suffix
        ),
    }

    range_header = request.headers.get("range")
    byte_range = None
    if range_header:
        try:
            byte_range = parse_range(range_header, size)
        except RangeNotSatisfiable as e:
            raise APIError(
                code="RANGE_NOT_SATISFIABLE",
                message="Requested range not satisfiable",
                status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
                details={"size": size},
            ) from e

    if byte_range is None:
        headers["Content-Length"] = str(size)
        return StreamingResponse(
            _file_chunks(path, 0, size - 1),
            status_code=status.HTTP_200_OK,
            media_type=media_type,
            headers=headers,
        )

    start, end = byte_range
    headers["Content-Range"] = f"bytes {start}-{end}/{size}"
    headers["Content-Length"] = str(end - start + 1)
    logger.debug(
        "Serving byte range",
        extra={"video_id": video_id, "start": start, "end": end, "size": size},
    )
    return StreamingResponse(
        _file_chunks(path, start, end),
        status_code=status.HTTP_206_PARTIAL_CONTENT,
        media_type=media_type,
        headers=headers,
    )
