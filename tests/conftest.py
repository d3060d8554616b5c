"""
Pytest configuration and fixtures for Common Storage tests.

Unit tests run against the in-memory backend. Tests marked ``e2e`` need a
real bucket (TEST_BUCKET_NAME plus cloud credentials) and are skipped
otherwise.
"""
import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add package root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common_storage.backends.memory import InMemoryStorage
from common_storage.bucket import StorageBucket
from common_storage.config import Settings
from common_storage.key_value import StorageKeyValueDB

# Load environment variables from .env or .env.dev
load_dotenv()
load_dotenv(".env.dev")

TEST_BUCKET = "TEST_BUCKET"


# ============================================
# Test Fixtures
# ============================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only (no .env)."""
    return Settings(_env_file=None, STORAGE_BACKEND="memory", DEFAULT_BUCKET=TEST_BUCKET)


@pytest.fixture
def storage(test_settings) -> InMemoryStorage:
    """Fresh in-memory storage per test."""
    return InMemoryStorage(settings=test_settings)


@pytest.fixture
def bucket(storage) -> StorageBucket:
    return StorageBucket(storage, TEST_BUCKET)


@pytest.fixture
def kv_db(storage) -> StorageKeyValueDB:
    return StorageKeyValueDB(storage, bucket_name=TEST_BUCKET)


@pytest.fixture(scope="session")
def e2e_bucket_name() -> str:
    """Bucket for e2e tests (optional)."""
    return os.getenv("TEST_BUCKET_NAME", "")


# ============================================
# Pytest Configuration
# ============================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "fast: Fast unit tests (no external API calls)"
    )
    config.addinivalue_line(
        "markers", "e2e: Tests against a real bucket (requires credentials)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip e2e tests when no test bucket is configured."""
    if os.getenv("TEST_BUCKET_NAME"):
        return

    skip_e2e = pytest.mark.skip(reason="TEST_BUCKET_NAME not set")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)
