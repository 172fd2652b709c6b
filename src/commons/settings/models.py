"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "streamvault"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=3070, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    uri: str | None = None  # Full connection string; overrides host/port/credentials
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "streamvault"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class StorageSettings(BaseModel):
    """Local asset storage and upload intake settings."""

    videos_root: str = "uploads/videos"
    uploads_dir: str = "uploads/incoming"
    max_video_size_mb: int = Field(default=100, ge=1)
    max_thumbnail_size_mb: int = Field(default=5, ge=1)
    allowed_video_types: list[str] = Field(
        default_factory=lambda: ["mp4", "mov", "mkv", "avi", "webm", "m4v"]
    )
    allowed_thumbnail_types: list[str] = Field(
        default_factory=lambda: ["jpg", "jpeg", "png", "webp"]
    )
    upload_chunk_bytes: int = Field(default=1024 * 1024, ge=4096)


class CodecSettings(BaseModel):
    """External codec tool (ffmpeg) settings."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    cancel_poll_interval_seconds: float = Field(default=2.0, gt=0)
    thumbnail_offset_seconds: float = 4.0
    preview_start_seconds: float = 1.0
    preview_duration_seconds: float = 3.0
    preview_fps: int = 10
    preview_width: int = 320
    segment_seconds: int = 4
    keyframe_interval: int = 48
    preset: str = "medium"
    audio_bitrate: str = "128k"
    webp_quality: int = Field(default=80, ge=1, le=100)


class SigningSettings(BaseModel):
    """Signed streaming URL settings."""

    secret: str = ""
    default_ttl_minutes: int = Field(default=15, ge=1)


class AuthSettings(BaseModel):
    """Bearer identity token settings."""

    public_key: str = ""
    public_key_path: str = "public.pem"
    algorithms: list[str] = Field(default_factory=lambda: ["RS256"])
    subject_claim: str = "userId"


class LifecycleSettings(BaseModel):
    """Asset reclamation settings."""

    delete_max_attempts: int = Field(default=10, ge=1)
    delete_backoff_seconds: float = Field(default=1.0, ge=0)
    orphan_retry_delay_seconds: float = Field(default=1.0, ge=0)


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    codec: CodecSettings = Field(default_factory=CodecSettings)
    signing: SigningSettings = Field(default_factory=SigningSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    lifecycle: LifecycleSettings = Field(default_factory=LifecycleSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STREAMVAULT__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
