"""Multipart upload intake: stream files to disk with type and size limits."""

import uuid
from pathlib import Path

from fastapi import UploadFile, status

from src.api.middleware.error_handler import APIError
from src.application.services.videos import StoredUpload
from src.commons.telemetry import get_logger
from src.domain.exceptions import UploadRejectedException

logger = get_logger(__name__)


def file_extension(filename: str | None) -> str:
    """Lowercase extension without the dot, or '' if there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


async def save_upload(
    upload: UploadFile,
    dest_dir: Path,
    *,
    field: str,
    allowed_extensions: list[str],
    max_bytes: int,
    chunk_bytes: int = 1024 * 1024,
) -> StoredUpload:
    """Stream an uploaded file to ``dest_dir`` under a random name.

    The extension is checked before any bytes are read. A partial file is
    removed when the size limit is hit or the write fails.

    Raises:
        UploadRejectedException: Unsupported extension, empty or oversized file.
        APIError: If local storage fails.
    """
    ext = file_extension(upload.filename)
    if ext not in allowed_extensions:
        raise UploadRejectedException(
            UploadRejectedException.UNSUPPORTED_TYPE,
            f"File type not allowed. Allowed types are: {'|'.join(allowed_extensions)}",
            field=field,
        )

    dest_dir.mkdir(parents=True, exist_ok=True)
    path = dest_dir / f"{uuid.uuid4().hex}.{ext}"
    total = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = await upload.read(chunk_bytes)
                if not chunk:
                    break
                total += len(chunk)
                if total > max_bytes:
                    out.close()
                    path.unlink(missing_ok=True)
                    limit_mb = max_bytes / (1024 * 1024)
                    raise UploadRejectedException(
                        UploadRejectedException.TOO_LARGE,
                        f"File too large. Maximum size for {field} is {limit_mb:.0f} MB",
                        field=field,
                    )
                out.write(chunk)
    except OSError as e:
        path.unlink(missing_ok=True)
        logger.warning(f"Storage error while saving upload: {e}")
        raise APIError(
            code="STORAGE_UNAVAILABLE",
            message="Upload storage temporarily unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        ) from e
    finally:
        await upload.close()

    if total == 0:
        path.unlink(missing_ok=True)
        raise UploadRejectedException(
            UploadRejectedException.INVALID_FIELD,
            f"Uploaded {field} is empty",
            field=field,
        )

    return StoredUpload(
        path=path,
        original_filename=upload.filename or path.name,
        content_type=upload.content_type,
        size_bytes=total,
    )
