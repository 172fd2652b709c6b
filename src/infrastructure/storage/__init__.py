"""Per-video asset storage on the local filesystem."""

from src.infrastructure.storage.asset_store import AssetNames, AssetPathError, AssetStore

__all__ = [
    "AssetStore",
    "AssetNames",
    "AssetPathError",
]
