"""Library configuration with Pydantic Settings.

Settings are loaded from environment variables and .env files.

Examples:
    >>> from common_storage.config import get_settings
    >>> settings = get_settings()
    >>> settings.COMPOSE_BATCH_SIZE
    32

Tests:
    - tests/unit/test_config.py
"""

import logging
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Maximum number of sources accepted by a single native compose call
MAX_COMPOSE_SOURCES = 32

# Maximum number of nested composition levels
MAX_RECURSION_DEPTH = 10

# Signed URLs (v4) cannot live longer than this
MAX_SIGNED_URL_TTL_DAYS = 7


class BackendType(str, Enum):
    """Supported storage backends."""

    MEMORY = "memory"
    CLOUD = "cloud"


class Settings(BaseSettings):
    """Storage settings.

    Attributes:
        STORAGE_BACKEND: Backend used by create_storage()
        DEFAULT_BUCKET: Bucket used by the key-value adapter and the CLI
        GCP_PROJECT_ID: Google Cloud project for the cloud backend
        GCP_SERVICE_ACCOUNT: Service account JSON (inline)
        GOOGLE_APPLICATION_CREDENTIALS: Path to a service account file
        COMPOSE_BATCH_SIZE: Sources per native compose call
        COMPOSE_MAX_RECURSION_DEPTH: Composition depth guard
        DELETE_CONCURRENCY: Parallel deletes in bulk operations
        SAVE_CONCURRENCY: Parallel saves/reads in bulk operations
        DOWNLOAD_CONCURRENCY: Parallel downloads while streaming files
        SIGNED_URL_HOST: Host used by the in-memory backend's signed URLs
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Backend
    STORAGE_BACKEND: BackendType = Field(
        default=BackendType.MEMORY,
        description="Storage backend (memory or cloud)",
    )
    DEFAULT_BUCKET: str = Field(
        default="TEST_BUCKET",
        description="Default bucket name",
    )

    # Google Cloud credentials
    GCP_PROJECT_ID: str | None = Field(
        default=None,
        description="Google Cloud project id",
    )
    GCP_SERVICE_ACCOUNT: str | None = Field(
        default=None,
        description="Service account JSON string",
    )
    GOOGLE_APPLICATION_CREDENTIALS: str | None = Field(
        default=None,
        description="Path to service account JSON file",
    )

    # Composition
    COMPOSE_BATCH_SIZE: int = Field(
        default=MAX_COMPOSE_SOURCES,
        description="Sources per native compose call",
        ge=2,
        le=MAX_COMPOSE_SOURCES,
    )
    COMPOSE_MAX_RECURSION_DEPTH: int = Field(
        default=MAX_RECURSION_DEPTH,
        description="Maximum composition recursion depth",
        ge=0,
    )

    # Concurrency
    DELETE_CONCURRENCY: int = Field(default=8, ge=1, description="Parallel deletes")
    SAVE_CONCURRENCY: int = Field(default=8, ge=1, description="Parallel saves/reads")
    DOWNLOAD_CONCURRENCY: int = Field(default=16, ge=1, description="Parallel downloads")

    # Signed URLs
    SIGNED_URL_HOST: str = Field(
        default="testurl.com",
        description="Host for in-memory signed URLs",
    )

    # Application
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    DEBUG: bool = Field(default=False, description="Verbose composition logging")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name, got: {v}")
        return level

    @property
    def is_cloud(self) -> bool:
        """Check if the cloud backend is selected."""
        return self.STORAGE_BACKEND == BackendType.CLOUD


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: The library settings.
    """
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging the way the CLI expects."""
    logging.basicConfig(
        level=level or get_settings().LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
