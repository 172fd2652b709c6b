"""Settings management module."""

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    AuthSettings,
    CodecSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    LifecycleSettings,
    ServerSettings,
    Settings,
    SigningSettings,
    StorageSettings,
    TelemetrySettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    "StorageSettings",
    # Processing
    "CodecSettings",
    "LifecycleSettings",
    # Security
    "SigningSettings",
    "AuthSettings",
    # Telemetry
    "TelemetrySettings",
]
