"""Unit tests for configuration module.

Tests for common_storage/config.py - Settings and backend selection.

Run with:
    pytest tests/unit/test_config.py -v
    pytest tests/unit/test_config.py -v -m fast
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from common_storage.config import (
    MAX_COMPOSE_SOURCES,
    MAX_RECURSION_DEPTH,
    BackendType,
    Settings,
    configure_logging,
    get_settings,
)


@pytest.mark.fast
class TestBackendType:
    """Tests for BackendType enum."""

    def test_backend_type_values(self):
        """Test BackendType enum has expected values."""
        assert BackendType.MEMORY.value == "memory"
        assert BackendType.CLOUD.value == "cloud"

    def test_backend_type_from_string(self):
        assert BackendType("cloud") is BackendType.CLOUD


@pytest.mark.fast
class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test Settings has sensible defaults."""
        settings = Settings(_env_file=None)
        assert settings.COMPOSE_BATCH_SIZE == MAX_COMPOSE_SOURCES == 32
        assert settings.COMPOSE_MAX_RECURSION_DEPTH == MAX_RECURSION_DEPTH == 10
        assert settings.DEFAULT_BUCKET == "TEST_BUCKET"
        assert settings.SIGNED_URL_HOST == "testurl.com"
        assert settings.DELETE_CONCURRENCY == 8
        assert settings.DOWNLOAD_CONCURRENCY == 16

    def test_is_cloud(self):
        """Test is_cloud property."""
        assert Settings(_env_file=None, STORAGE_BACKEND="cloud").is_cloud is True
        assert Settings(_env_file=None, STORAGE_BACKEND="memory").is_cloud is False

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, STORAGE_BACKEND="s3")

    def test_batch_size_bounds(self):
        """Test COMPOSE_BATCH_SIZE cannot exceed the native compose limit."""
        assert Settings(_env_file=None, COMPOSE_BATCH_SIZE=2).COMPOSE_BATCH_SIZE == 2
        with pytest.raises(ValidationError):
            Settings(_env_file=None, COMPOSE_BATCH_SIZE=33)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, COMPOSE_BATCH_SIZE=1)

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, SAVE_CONCURRENCY=0)

    def test_log_level_is_normalized(self):
        """Test LOG_LEVEL accepts lowercase names."""
        assert Settings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="LOUD")

    def test_reads_environment(self, monkeypatch):
        """Test Settings reads values from the environment."""
        monkeypatch.setenv("DEFAULT_BUCKET", "env-bucket")
        monkeypatch.setenv("COMPOSE_BATCH_SIZE", "4")
        settings = Settings(_env_file=None)
        assert settings.DEFAULT_BUCKET == "env-bucket"
        assert settings.COMPOSE_BATCH_SIZE == 4


@pytest.mark.fast
class TestGetSettings:
    """Tests for get_settings function."""

    def test_get_settings_is_cached(self):
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()


@pytest.mark.fast
class TestConfigureLogging:
    def test_configure_logging_passes_level(self):
        with patch("common_storage.config.logging.basicConfig") as basic_config:
            configure_logging("WARNING")
        assert basic_config.call_args.kwargs["level"] == "WARNING"
        assert "%(name)s" in basic_config.call_args.kwargs["format"]
