"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from pathlib import Path as FilePath
from typing import Annotated

from fastapi import Depends, Path

from src.application.services.jobs import BackgroundJobRunner
from src.application.services.lifecycle import VideoDeletionManager
from src.application.services.processing import VideoProcessingPipeline
from src.application.services.storage import VideoRecordStore
from src.application.services.thumbnails import CustomThumbnailService
from src.application.services.videos import VideoService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.domain.value_objects import VideoId
from src.infrastructure.auth import JWTTokenVerifier
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.signing import SignedUrlAuthority

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


@lru_cache
def get_job_runner() -> BackgroundJobRunner:
    """Get the process-wide background job runner."""
    return BackgroundJobRunner()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


def get_record_store(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoRecordStore:
    return VideoRecordStore(factory.get_document_db(), settings.document_db)


def get_signed_url_authority(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> SignedUrlAuthority:
    return factory.get_signed_url_authority()


def get_token_verifier(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> JWTTokenVerifier:
    return factory.get_token_verifier()


def get_video_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    records: Annotated[VideoRecordStore, Depends(get_record_store)],
    jobs: Annotated[BackgroundJobRunner, Depends(get_job_runner)],
) -> VideoService:
    """Get video service with all dependencies.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.
        records: Video record store.
        jobs: Background job runner.

    Returns:
        Configured video service.
    """
    assets = factory.get_asset_store()
    images = factory.get_image_converter()
    pipeline = VideoProcessingPipeline(
        records=records,
        assets=assets,
        codec=factory.get_codec_invoker(),
        images=images,
        jobs=jobs,
        codec_settings=settings.codec,
        lifecycle_settings=settings.lifecycle,
    )
    return VideoService(
        records=records,
        assets=assets,
        jobs=jobs,
        pipeline=pipeline,
        thumbnails=CustomThumbnailService(
            records, assets, images, settings.codec, settings.lifecycle
        ),
        deletion=VideoDeletionManager(records, assets, jobs, settings.lifecycle),
        signer=factory.get_signed_url_authority(),
    )


def valid_video_id(
    video_id: Annotated[str, Path(description="Video id (UUID)")],
) -> str:
    """Reject malformed ids before any path is derived from them."""
    return VideoId.parse(video_id).value


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
JobRunnerDep = Annotated[BackgroundJobRunner, Depends(get_job_runner)]
VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]
SignedUrlAuthorityDep = Annotated[SignedUrlAuthority, Depends(get_signed_url_authority)]
TokenVerifierDep = Annotated[JWTTokenVerifier, Depends(get_token_verifier)]
VideoIdDep = Annotated[str, Depends(valid_video_id)]


async def init_services(settings: Settings) -> None:
    """Initialize all infrastructure services on startup.

    Fails fast when the signing secret or the token public key is missing.

    Args:
        settings: Application settings.
    """
    factory = get_factory(settings)

    factory.get_signed_url_authority()
    factory.get_token_verifier()
    factory.get_asset_store()
    factory.get_codec_invoker()
    FilePath(settings.storage.uploads_dir).mkdir(parents=True, exist_ok=True)

    records = VideoRecordStore(factory.get_document_db(), settings.document_db)
    try:
        await records.ensure_indexes()
    except Exception as e:
        logger.warning(f"Could not ensure video indexes: {e}")


async def shutdown_services() -> None:
    """Shutdown background jobs and infrastructure services."""
    try:
        await get_job_runner().shutdown()
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_job_runner.cache_clear()
        get_settings.cache_clear()
