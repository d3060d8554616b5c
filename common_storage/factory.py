"""Factory for configuring a storage backend from settings."""

from __future__ import annotations

import logging

from common_storage.backends.base import CommonStorage
from common_storage.backends.cloud import CloudStorage
from common_storage.backends.memory import InMemoryStorage
from common_storage.config import BackendType, Settings, get_settings

logger = logging.getLogger(__name__)


def create_storage(settings: Settings | None = None) -> CommonStorage:
    """Create the backend selected by ``STORAGE_BACKEND``.

    The cloud backend prefers inline service account JSON, then a
    credentials file, then application default credentials.
    """
    settings = settings or get_settings()

    if settings.STORAGE_BACKEND == BackendType.CLOUD:
        if settings.GCP_SERVICE_ACCOUNT:
            logger.info("Using cloud storage with inline service account")
            return CloudStorage.from_service_account(
                settings.GCP_SERVICE_ACCOUNT, settings=settings, debug=settings.DEBUG
            )
        logger.info(f"Using cloud storage (project={settings.GCP_PROJECT_ID})")
        return CloudStorage.from_client_options(
            project=settings.GCP_PROJECT_ID,
            credentials_path=settings.GOOGLE_APPLICATION_CREDENTIALS,
            settings=settings,
            debug=settings.DEBUG,
        )

    logger.info("Using in-memory storage")
    return InMemoryStorage(settings=settings)
