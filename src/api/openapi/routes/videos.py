"""Video management endpoints."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from pydantic import BaseModel, Field

from src.api.dependencies import SettingsDep, VideoIdDep, VideoServiceDep
from src.api.security import CurrentSubjectDep
from src.api.uploads import save_upload
from src.application.dtos.videos import (
    AcceptedResponse,
    DeleteVideoResponse,
    SignedUrlResponse,
    UploadAcceptedResponse,
    VideoDurationResponse,
    VideoListResponse,
    VideoMetadataInput,
    VideoResponse,
    VideoStatusResponse,
    VideoSummary,
)
from src.application.services.videos import StoredUpload
from src.commons.settings.models import Settings
from src.domain.models.video import VideoStatus
from src.infrastructure.signing import SignedToken

router = APIRouter()

MB = 1024 * 1024


class SignedUrlRequest(BaseModel):
    """Optional body for issuing a signed streaming URL."""

    ttl_minutes: int | None = Field(
        default=None,
        ge=1,
        le=24 * 60,
        description="Lifetime of the URL; the server default when omitted",
    )


async def _save_video(upload: UploadFile, settings: Settings) -> StoredUpload:
    return await save_upload(
        upload,
        Path(settings.storage.uploads_dir),
        field="video",
        allowed_extensions=settings.storage.allowed_video_types,
        max_bytes=settings.storage.max_video_size_mb * MB,
        chunk_bytes=settings.storage.upload_chunk_bytes,
    )


async def _save_thumbnail(upload: UploadFile, settings: Settings) -> StoredUpload:
    return await save_upload(
        upload,
        Path(settings.storage.uploads_dir),
        field="thumbnail",
        allowed_extensions=settings.storage.allowed_thumbnail_types,
        max_bytes=settings.storage.max_thumbnail_size_mb * MB,
        chunk_bytes=settings.storage.upload_chunk_bytes,
    )


def _signed_url_response(
    video_id: str,
    token: SignedToken,
    settings: Settings,
) -> SignedUrlResponse:
    base = f"{settings.server.api_prefix}/videos"
    query = token.query_string
    return SignedUrlResponse(
        video_id=video_id,
        expires=token.expires,
        signature=token.signature,
        uid=token.subject_id,
        query=query,
        stream_url=f"{base}/stream/{video_id}{query}",
        thumbnail_url=f"{base}/thumb/signed/{video_id}{query}",
    )


@router.post(
    "/videos",
    response_model=UploadAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Upload a video",
    description=(
        "Upload a video with optional metadata and custom thumbnail. "
        "Returns immediately; processing into HLS renditions and "
        "thumbnails continues in the background."
    ),
)
async def upload_video(
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
    settings: SettingsDep,
    video: Annotated[UploadFile, File(description="Video file")],
    thumbnail: Annotated[
        UploadFile | None,
        File(description="Optional custom thumbnail image"),
    ] = None,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
    tags: Annotated[
        str | None,
        Form(description="JSON array or comma separated list"),
    ] = None,
) -> UploadAcceptedResponse:
    """Accept an upload and start background processing."""
    metadata = VideoMetadataInput(
        title=title,
        description=description,
        category=category,
        tags=tags,
    )

    stored_video = await _save_video(video, settings)
    stored_thumb: StoredUpload | None = None
    try:
        if thumbnail is not None and thumbnail.filename:
            stored_thumb = await _save_thumbnail(thumbnail, settings)
        created = await service.create(subject, stored_video, metadata, stored_thumb)
    except Exception:
        stored_video.path.unlink(missing_ok=True)
        if stored_thumb is not None:
            stored_thumb.path.unlink(missing_ok=True)
        raise

    return UploadAcceptedResponse(status=VideoStatus.IN_PROGRESS, id=created.id)


@router.get(
    "/videos",
    response_model=VideoListResponse,
    summary="List videos",
    description="List the caller's videos, newest first.",
)
async def list_videos(
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
    skip: Annotated[int, Query(ge=0, description="Number of videos to skip")] = 0,
    limit: Annotated[int, Query(ge=1, le=100, description="Page size")] = 20,
) -> VideoListResponse:
    """List the caller's videos with pagination."""
    videos, total = await service.list_for_owner(subject, skip=skip, limit=limit)
    return VideoListResponse(
        videos=[VideoSummary.from_video(v) for v in videos],
        total_count=total,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/videos/status/{video_id}",
    response_model=VideoStatusResponse,
    summary="Get processing status",
)
async def get_video_status(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> VideoStatusResponse:
    video = await service.get_owned(video_id, subject)
    return VideoStatusResponse(id=video.id, status=video.status)


@router.get(
    "/videos/duration/{video_id}",
    response_model=VideoDurationResponse,
    summary="Get video duration",
)
async def get_video_duration(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> VideoDurationResponse:
    video = await service.get_owned(video_id, subject)
    return VideoDurationResponse(id=video.id, duration_seconds=video.duration_seconds)


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get video details",
)
async def get_video(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> VideoResponse:
    """Get details of one of the caller's videos."""
    video = await service.get_owned(video_id, subject)
    return VideoResponse.from_video(video)


@router.patch(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Update video metadata",
    description="Update title, description, category or tags.",
)
async def update_video(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
    body: VideoMetadataInput,
) -> VideoResponse:
    video = await service.update_metadata(video_id, subject, body)
    return VideoResponse.from_video(video)


@router.delete(
    "/videos/{video_id}",
    response_model=DeleteVideoResponse,
    summary="Delete video",
    description=(
        "Delete the video record. Stored assets are reclaimed in the "
        "background and any in-flight processing is stopped."
    ),
)
async def delete_video(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
) -> DeleteVideoResponse:
    """Delete a video and schedule removal of its assets."""
    await service.delete(video_id, subject)
    return DeleteVideoResponse(id=video_id, message="Video deleted")


@router.patch(
    "/videos/thumb/custom/{video_id}",
    response_model=AcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Replace custom thumbnail",
)
async def replace_custom_thumbnail(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
    settings: SettingsDep,
    thumbnail: Annotated[UploadFile, File(description="Thumbnail image")],
) -> AcceptedResponse:
    """Validate the image and convert it to WebP in the background."""
    await service.get_owned(video_id, subject)
    stored = await _save_thumbnail(thumbnail, settings)
    await service.replace_thumbnail(video_id, subject, stored)
    return AcceptedResponse(message="Thumbnail update accepted")


@router.post(
    "/videos/{video_id}/signed-url",
    response_model=SignedUrlResponse,
    summary="Issue signed streaming URL",
)
async def issue_signed_url(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
    settings: SettingsDep,
    body: SignedUrlRequest | None = None,
) -> SignedUrlResponse:
    ttl = body.ttl_minutes if body is not None else None
    token = await service.issue_signed_url(video_id, subject, ttl)
    return _signed_url_response(video_id, token, settings)


@router.post(
    "/videos/{video_id}/refresh-token",
    response_model=SignedUrlResponse,
    summary="Refresh signed streaming URL",
    description="Reissue the signed query with a new expiry.",
)
async def refresh_signed_url(
    video_id: VideoIdDep,
    subject: CurrentSubjectDep,
    service: VideoServiceDep,
    settings: SettingsDep,
    body: SignedUrlRequest | None = None,
) -> SignedUrlResponse:
    ttl = body.ttl_minutes if body is not None else None
    token = await service.issue_signed_url(video_id, subject, ttl)
    return _signed_url_response(video_id, token, settings)
