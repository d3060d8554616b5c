"""End-to-end tests against a real Google Cloud Storage bucket.

These tests make REAL API calls and require credentials.

Run with:
    pytest -m e2e -v

Requirements:
    - TEST_BUCKET_NAME (a bucket you can write to and clear)
    - GCP_SERVICE_ACCOUNT, GOOGLE_APPLICATION_CREDENTIALS or default credentials
"""

from datetime import timedelta

import pytest

from common_storage.backends.cloud import CloudStorage
from common_storage.config import Settings
from common_storage.models import GetFilesOptions
from common_storage.testing import run_common_storage_test


@pytest.fixture
def cloud_storage():
    settings = Settings(STORAGE_BACKEND="cloud")
    if settings.GCP_SERVICE_ACCOUNT:
        return CloudStorage.from_service_account(settings.GCP_SERVICE_ACCOUNT, settings=settings)
    return CloudStorage.from_client_options(
        project=settings.GCP_PROJECT_ID,
        credentials_path=settings.GOOGLE_APPLICATION_CREDENTIALS,
        settings=settings,
    )


@pytest.mark.e2e
class TestCloudStorageE2E:
    @pytest.mark.asyncio
    async def test_common_storage_sequence(self, cloud_storage, e2e_bucket_name):
        await run_common_storage_test(cloud_storage, e2e_bucket_name)

    @pytest.mark.asyncio
    async def test_combine_more_than_one_batch(self, cloud_storage, e2e_bucket_name):
        paths = [f"e2e/combine/{i:03d}" for i in range(40)]
        for i, p in enumerate(paths):
            await cloud_storage.save_file(e2e_bucket_name, p, f"{i}\n".encode())

        try:
            await cloud_storage.combine_files(e2e_bucket_name, paths, "e2e/combined.txt")
            content = await cloud_storage.get_file(e2e_bucket_name, "e2e/combined.txt")
            assert content == "".join(f"{i}\n" for i in range(40)).encode()
            remaining = await cloud_storage.get_file_names(e2e_bucket_name, GetFilesOptions(prefix="e2e/"))
            assert remaining == ["e2e/combined.txt"]
        finally:
            await cloud_storage.delete_path(e2e_bucket_name, "e2e/")

    @pytest.mark.asyncio
    async def test_signed_url(self, cloud_storage, e2e_bucket_name):
        await cloud_storage.save_file(e2e_bucket_name, "e2e/signed.txt", b"hello")
        try:
            url = await cloud_storage.get_signed_url(e2e_bucket_name, "e2e/signed.txt", timedelta(minutes=5))
            assert url.startswith("https://")
        finally:
            await cloud_storage.delete_path(e2e_bucket_name, "e2e/")
