"""Health check endpoints."""

import os
import shutil
from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep
from src.commons.settings.models import Settings
from src.infrastructure.factory import InfrastructureFactory

router = APIRouter()


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _check_document_db(factory: InfrastructureFactory) -> ComponentHealth:
    try:
        result = await factory.get_document_db().health_check()
    except Exception as e:
        return ComponentHealth(
            name="document_db", status=HealthStatus.UNHEALTHY, message=str(e)
        )
    return ComponentHealth(
        name="document_db",
        status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
        message=result.message,
    )


def _check_asset_root(factory: InfrastructureFactory) -> ComponentHealth:
    try:
        root = factory.get_asset_store().root
    except Exception as e:
        return ComponentHealth(
            name="asset_storage", status=HealthStatus.UNHEALTHY, message=str(e)
        )
    if root.is_dir() and os.access(root, os.W_OK):
        return ComponentHealth(
            name="asset_storage", status=HealthStatus.HEALTHY, message=str(root)
        )
    return ComponentHealth(
        name="asset_storage",
        status=HealthStatus.UNHEALTHY,
        message=f"{root} is not a writable directory",
    )


def _check_codec_tools(settings: Settings) -> ComponentHealth:
    missing = [
        tool
        for tool in (settings.codec.ffmpeg_path, settings.codec.ffprobe_path)
        if shutil.which(tool) is None
    ]
    if missing:
        return ComponentHealth(
            name="codec",
            status=HealthStatus.UNHEALTHY,
            message=f"Not found: {', '.join(missing)}",
        )
    return ComponentHealth(name="codec", status=HealthStatus.HEALTHY)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of all service components."""
    components = [
        await _check_document_db(factory),
        _check_asset_root(factory),
        _check_codec_tools(settings),
    ]

    unhealthy_count = sum(1 for c in components if c.status == HealthStatus.UNHEALTHY)
    if unhealthy_count == 0:
        overall_status = HealthStatus.HEALTHY
    elif unhealthy_count >= 2:
        overall_status = HealthStatus.UNHEALTHY
    else:
        overall_status = HealthStatus.DEGRADED

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes probes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check for Kubernetes probes.",
)
async def readiness(
    settings: SettingsDep,
    factory: FactoryDep,
) -> ReadinessResponse:
    """Check if service is ready to accept requests.

    Uploads need the document store, a writable asset root and the codec
    tools, so all three must pass.
    """
    checks = {
        "document_db": (await _check_document_db(factory)).status
        == HealthStatus.HEALTHY,
        "asset_storage": _check_asset_root(factory).status == HealthStatus.HEALTHY,
        "codec": _check_codec_tools(settings).status == HealthStatus.HEALTHY,
    }
    return ReadinessResponse(ready=all(checks.values()), checks=checks)
