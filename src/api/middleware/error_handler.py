"""Error handling middleware and exception handlers."""

from collections.abc import Sequence
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    AssetNotFoundException,
    AuthenticationException,
    DomainException,
    InvalidVideoIdException,
    SignedUrlException,
    UploadRejectedException,
    VideoAccessDeniedException,
    VideoNotFoundException,
    VideoNotReadyException,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build standardized error response.

    Args:
        request: HTTP request.
        code: Error code.
        message: Error message.
        status_code: HTTP status code.
        details: Additional details.
        headers: Extra response headers.

    Returns:
        JSON error response.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
        headers=headers,
    )


def _validation_details(errors: Sequence[Any]) -> dict[str, Any]:
    """Reduce pydantic error entries to JSON-safe fields."""
    return {
        "errors": [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in errors
        ]
    }


_UPLOAD_STATUS = {
    UploadRejectedException.TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    UploadRejectedException.UNSUPPORTED_TYPE: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


def _handle_exception(  # noqa: PLR0911
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "details": exc.details,
            },
        )
        return _build_error_response(
            request=request,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    if isinstance(exc, RequestValidationError | ValidationError):
        logger.warning(f"Validation error: {exc}")
        return _build_error_response(
            request=request,
            code="VALIDATION_ERROR",
            message="Request validation failed",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=_validation_details(exc.errors()),
        )

    if isinstance(exc, StarletteHTTPException):
        code = HTTPStatus(exc.status_code).name
        return _build_error_response(
            request=request,
            code=code,
            message=str(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    if isinstance(exc, InvalidVideoIdException):
        logger.warning(f"Invalid video id: {exc}")
        return _build_error_response(
            request=request,
            code="INVALID_VIDEO_ID",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, VideoNotFoundException):
        logger.warning(f"Video not found: {exc}")
        return _build_error_response(
            request=request,
            code="VIDEO_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"video_id": exc.video_id},
        )

    if isinstance(exc, VideoNotReadyException):
        logger.info(f"Video not ready: {exc}")
        return _build_error_response(
            request=request,
            code="VIDEO_NOT_READY",
            message="Video processing not completed yet",
            status_code=status.HTTP_423_LOCKED,
            details={"video_id": exc.video_id, "status": exc.status.value},
        )

    if isinstance(exc, AssetNotFoundException):
        logger.warning(f"Asset not found: {exc}")
        return _build_error_response(
            request=request,
            code="ASSET_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"video_id": exc.video_id},
        )

    if isinstance(exc, VideoAccessDeniedException):
        logger.warning(f"Access denied: {exc}")
        return _build_error_response(
            request=request,
            code="FORBIDDEN",
            message="You do not have permission to access this video",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    if isinstance(exc, AuthenticationException):
        logger.info(f"Authentication failed: {exc.reason}")
        return _build_error_response(
            request=request,
            code=exc.reason,
            message=str(exc),
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(exc, SignedUrlException):
        logger.info(f"Signed URL rejected: {exc.reason}")
        status_code = (
            status.HTTP_400_BAD_REQUEST
            if exc.reason == SignedUrlException.MALFORMED_EXPIRY
            else status.HTTP_401_UNAUTHORIZED
        )
        return _build_error_response(
            request=request,
            code=exc.reason,
            message=str(exc),
            status_code=status_code,
        )

    if isinstance(exc, UploadRejectedException):
        logger.warning(f"Upload rejected: {exc}")
        return _build_error_response(
            request=request,
            code=exc.reason,
            message=str(exc),
            status_code=_UPLOAD_STATUS.get(exc.reason, status.HTTP_400_BAD_REQUEST),
            details={"field": exc.field} if exc.field else None,
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def _exception_handler(request: Request, exc: Exception) -> Response:
    return _handle_exception(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Route framework and domain errors through the shared error envelope."""
    for exc_type in (
        RequestValidationError,
        ValidationError,
        StarletteHTTPException,
        DomainException,
        APIError,
    ):
        app.add_exception_handler(exc_type, _exception_handler)


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        HTTP response.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
