"""Unit tests for settings models and loader."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    AuthSettings,
    CodecSettings,
    DocumentDBSettings,
    LifecycleSettings,
    ServerSettings,
    Settings,
    SigningSettings,
    StorageSettings,
)


class TestAppSettings:
    """Tests for AppSettings model."""

    def test_default_values(self):
        settings = AppSettings()
        assert settings.name == "streamvault"
        assert settings.version == "0.1.0"
        assert settings.environment == "dev"
        assert settings.debug is False
        assert settings.log_level == "INFO"

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            AppSettings(environment="invalid")  # type: ignore[arg-type]

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="TRACE")  # type: ignore[arg-type]


class TestServerSettings:
    """Tests for ServerSettings model."""

    def test_default_values(self):
        settings = ServerSettings()
        assert settings.port == 3070
        assert settings.api_prefix == "/v1"
        assert settings.docs_enabled is True

    def test_port_validation(self):
        assert ServerSettings(port=3000).port == 3000

        with pytest.raises(ValueError):
            ServerSettings(port=0)

        with pytest.raises(ValueError):
            ServerSettings(port=70000)


class TestStorageSettings:
    """Tests for StorageSettings model."""

    def test_default_limits(self):
        settings = StorageSettings()
        assert settings.max_video_size_mb == 100
        assert settings.max_thumbnail_size_mb == 5
        assert "mp4" in settings.allowed_video_types
        assert "png" in settings.allowed_thumbnail_types

    def test_size_limits_must_be_positive(self):
        with pytest.raises(ValueError):
            StorageSettings(max_video_size_mb=0)


class TestCodecSettings:
    """Tests for CodecSettings model."""

    def test_default_values(self):
        settings = CodecSettings()
        assert settings.cancel_poll_interval_seconds == 2.0
        assert settings.thumbnail_offset_seconds == 4.0
        assert settings.segment_seconds == 4
        assert settings.keyframe_interval == 48
        assert settings.preset == "medium"
        assert settings.audio_bitrate == "128k"

    def test_webp_quality_range(self):
        with pytest.raises(ValueError):
            CodecSettings(webp_quality=0)
        with pytest.raises(ValueError):
            CodecSettings(webp_quality=101)


class TestSecuritySettings:
    """Tests for signing and auth settings."""

    def test_signing_defaults(self):
        settings = SigningSettings()
        assert settings.secret == ""
        assert settings.default_ttl_minutes == 15

    def test_auth_defaults(self):
        settings = AuthSettings()
        assert settings.algorithms == ["RS256"]
        assert settings.subject_claim == "userId"

    def test_lifecycle_defaults(self):
        settings = LifecycleSettings()
        assert settings.delete_max_attempts == 10
        assert settings.delete_backoff_seconds == 1.0


class TestRootSettings:
    """Tests for root Settings model."""

    def test_default_values(self):
        settings = Settings()
        assert isinstance(settings.app, AppSettings)
        assert isinstance(settings.document_db, DocumentDBSettings)
        assert settings.document_db.collections.videos == "videos"
        assert settings.storage.videos_root == "uploads/videos"


class TestSettingsLoader:
    """Tests for SettingsLoader."""

    def test_load_empty_config(self):
        with TemporaryDirectory() as tmpdir:
            loader = SettingsLoader(config_dir=Path(tmpdir), environment="dev")
            settings = loader.load()
            assert settings.app.name == "streamvault"

    def test_load_environment_override(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            base_config = {
                "app": {"name": "test-app"},
                "server": {"port": 8000, "workers": 1},
            }
            (config_dir / "appsettings.json").write_text(json.dumps(base_config))
            prod_config = {
                "app": {"log_level": "WARNING"},
                "server": {"workers": 4, "docs_enabled": False},
            }
            (config_dir / "appsettings.prod.json").write_text(json.dumps(prod_config))

            settings = SettingsLoader(config_dir=config_dir, environment="prod").load()

            assert settings.app.name == "test-app"
            assert settings.server.port == 8000
            assert settings.app.log_level == "WARNING"
            assert settings.server.workers == 4
            assert settings.server.docs_enabled is False

    def test_prefixed_env_vars_win(self, monkeypatch):
        monkeypatch.setenv("STREAMVAULT__SIGNING__SECRET", "from-env")
        monkeypatch.setenv("STREAMVAULT__STORAGE__MAX_VIDEO_SIZE_MB", "250")
        monkeypatch.setenv(
            "STREAMVAULT__STORAGE__ALLOWED_VIDEO_TYPES", '["mp4", "webm"]'
        )
        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir)).load()

        assert settings.signing.secret == "from-env"
        assert settings.storage.max_video_size_mb == 250
        assert settings.storage.allowed_video_types == ["mp4", "webm"]

    def test_legacy_env_aliases(self, monkeypatch):
        monkeypatch.setenv("STREAM_SECRET", "legacy-secret")
        monkeypatch.setenv("MONGO_URI", "mongodb://db:27017/videos")
        monkeypatch.setenv("PORT", "4000")
        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir)).load()

        assert settings.signing.secret == "legacy-secret"
        assert settings.document_db.uri == "mongodb://db:27017/videos"
        assert settings.server.port == 4000

    def test_prefixed_env_overrides_legacy(self, monkeypatch):
        monkeypatch.setenv("STREAM_SECRET", "legacy")
        monkeypatch.setenv("STREAMVAULT__SIGNING__SECRET", "prefixed")
        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir)).load()

        assert settings.signing.secret == "prefixed"

    def test_coerce_value(self):
        loader = SettingsLoader()
        assert loader._coerce_value("true") is True
        assert loader._coerce_value("12") == 12
        assert loader._coerce_value("1.5") == 1.5
        assert loader._coerce_value("[1, 2]") == [1, 2]
        assert loader._coerce_value("plain") == "plain"

    def test_deep_merge(self):
        loader = SettingsLoader()
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        override = {"a": {"b": 10, "e": 4}, "f": 5}

        result = loader._deep_merge(base, override)

        assert result == {"a": {"b": 10, "c": 2, "e": 4}, "d": 3, "f": 5}


class TestGetSettings:
    """Tests for get_settings function."""

    def setup_method(self):
        reset_settings()

    def teardown_method(self):
        reset_settings()

    def test_get_settings_cached(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir))
            assert settings1 is settings2

    def test_get_settings_reload(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir), reload=True)
            assert settings1 is not settings2
