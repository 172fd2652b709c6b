"""Infrastructure layer - external service implementations."""

from src.infrastructure.auth import JWTTokenVerifier
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.images import (
    ImageConversionError,
    ImageConverterBase,
    PillowWebPConverter,
)
from src.infrastructure.signing import SignatureCheck, SignedToken, SignedUrlAuthority
from src.infrastructure.storage import AssetNames, AssetPathError, AssetStore
from src.infrastructure.video import (
    RENDITIONS,
    CancellationToken,
    CodecError,
    CodecInvokerBase,
    FFmpegCodecInvoker,
    Rendition,
    VideoProbe,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Video
    "CodecInvokerBase",
    "CodecError",
    "VideoProbe",
    "Rendition",
    "RENDITIONS",
    "CancellationToken",
    "FFmpegCodecInvoker",
    # Images
    "ImageConverterBase",
    "ImageConversionError",
    "PillowWebPConverter",
    # Storage
    "AssetStore",
    "AssetNames",
    "AssetPathError",
    # Signing
    "SignedUrlAuthority",
    "SignedToken",
    "SignatureCheck",
    # Auth
    "JWTTokenVerifier",
]
