"""Infrastructure factory for creating service instances from configuration."""

from pathlib import Path
from typing import Any, cast

from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.auth import JWTTokenVerifier
from src.infrastructure.images import ImageConverterBase, PillowWebPConverter
from src.infrastructure.signing import SignedUrlAuthority
from src.infrastructure.storage import AssetStore
from src.infrastructure.video import CodecInvokerBase, FFmpegCodecInvoker

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches one instance of each for the life of the process.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.uri:
                connection_string = doc_settings.uri
            elif doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_asset_store(self) -> AssetStore:
        """Get the per-video asset store rooted at ``storage.videos_root``."""
        if "asset_store" not in self._instances:
            root = Path(self._settings.storage.videos_root)
            root.mkdir(parents=True, exist_ok=True)
            self._instances["asset_store"] = AssetStore(root)
        return cast("AssetStore", self._instances["asset_store"])

    def get_codec_invoker(self) -> CodecInvokerBase:
        """Get codec invoker instance.

        Returns:
            Configured ffmpeg invoker.
        """
        if "codec_invoker" not in self._instances:
            codec = self._settings.codec
            self._instances["codec_invoker"] = FFmpegCodecInvoker(
                ffmpeg_path=codec.ffmpeg_path,
                ffprobe_path=codec.ffprobe_path,
                poll_interval_seconds=codec.cancel_poll_interval_seconds,
                preset=codec.preset,
                segment_seconds=codec.segment_seconds,
                keyframe_interval=codec.keyframe_interval,
                audio_bitrate=codec.audio_bitrate,
            )
        return cast("CodecInvokerBase", self._instances["codec_invoker"])

    def get_image_converter(self) -> ImageConverterBase:
        """Get thumbnail image converter."""
        if "image_converter" not in self._instances:
            self._instances["image_converter"] = PillowWebPConverter()
        return cast("ImageConverterBase", self._instances["image_converter"])

    def get_signed_url_authority(self) -> SignedUrlAuthority:
        """Get the signed URL authority.

        Raises:
            ValueError: If no signing secret is configured.
        """
        if "signed_url_authority" not in self._instances:
            signing = self._settings.signing
            self._instances["signed_url_authority"] = SignedUrlAuthority(
                secret=signing.secret,
                default_ttl_minutes=signing.default_ttl_minutes,
            )
        return cast("SignedUrlAuthority", self._instances["signed_url_authority"])

    def get_token_verifier(self) -> JWTTokenVerifier:
        """Get the bearer token verifier.

        Raises:
            ValueError: If no public key is configured or found on disk.
        """
        if "token_verifier" not in self._instances:
            auth = self._settings.auth
            self._instances["token_verifier"] = JWTTokenVerifier.from_settings(
                public_key=auth.public_key,
                public_key_path=auth.public_key_path,
                algorithms=auth.algorithms,
                subject_claim=auth.subject_claim,
            )
        return cast("JWTTokenVerifier", self._instances["token_verifier"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                close_result = close()
                if hasattr(close_result, "__await__"):
                    await close_result
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
