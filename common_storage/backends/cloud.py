"""Google Cloud Storage backend.

Wraps the synchronous ``google-cloud-storage`` client; every blocking
call runs in a worker thread via ``asyncio.to_thread``.

Examples:
    >>> storage = CloudStorage.from_service_account(json.loads(sa_json))
    >>> await storage.save_file("my-bucket", "a/b.txt", b"hello")
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any, TypeVar

from google.api_core.exceptions import GoogleAPIError, NotFound

from common_storage.backends.base import CommonStorage, WriteStream
from common_storage.config import MAX_COMPOSE_SOURCES, Settings
from common_storage.models import FileEntry, GetFilesOptions
from common_storage.naming import filter_file_names, filter_file_names_stream
from common_storage.utils.concurrency import map_stream, p_map
from common_storage.utils.expiry import ExpiresInput, resolve_expiry

logger = logging.getLogger(__name__)

T = TypeVar("T")

READ_CHUNK_SIZE = 256 * 1024

_SENTINEL = object()


async def iterate_in_thread(iterable: Iterable[T]) -> AsyncIterator[T]:
    """Pull a blocking iterator (e.g. a paged listing) one item at a time."""
    iterator = iter(iterable)
    while True:
        item = await asyncio.to_thread(next, iterator, _SENTINEL)
        if item is _SENTINEL:
            return
        yield item


class CloudWriteStream(WriteStream):
    """Resumable upload through ``Blob.open("wb")``."""

    def __init__(self, blob: Any) -> None:
        self.blob = blob
        self._fileobj = None

    async def write(self, data: bytes) -> None:
        if self._fileobj is None:
            self._fileobj = await asyncio.to_thread(self.blob.open, "wb")
        await asyncio.to_thread(self._fileobj.write, data)

    async def close(self) -> None:
        if self._fileobj is None:
            # Nothing written: create an empty object
            await asyncio.to_thread(self.blob.upload_from_string, b"")
            return
        await asyncio.to_thread(self._fileobj.close)


class CloudStorage(CommonStorage):
    """Storage contract implemented on Google Cloud Storage.

    Attributes:
        client: ``google.cloud.storage.Client`` instance.
        debug: Log composition progress at INFO level.
    """

    def __init__(self, client: Any, settings: Settings | None = None, debug: bool = False) -> None:
        super().__init__(settings)
        self.client = client
        self.debug = debug

    @classmethod
    def from_service_account(
        cls,
        info: dict[str, Any] | str,
        settings: Settings | None = None,
        debug: bool = False,
    ) -> "CloudStorage":
        """Create from service account info (dict or JSON string).

        The project id is taken from the service account explicitly, so it
        does not need to be detected from the environment.
        """
        from google.cloud import storage as gcs

        if isinstance(info, str):
            info = json.loads(info)
        client = gcs.Client.from_service_account_info(info, project=info.get("project_id"))
        return cls(client, settings=settings, debug=debug)

    @classmethod
    def from_client_options(
        cls,
        project: str | None = None,
        credentials_path: str | None = None,
        settings: Settings | None = None,
        debug: bool = False,
    ) -> "CloudStorage":
        """Create from a credentials file, or application default credentials."""
        from google.cloud import storage as gcs

        if credentials_path:
            client = gcs.Client.from_service_account_json(credentials_path, project=project)
        else:
            client = gcs.Client(project=project)
        return cls(client, settings=settings, debug=debug)

    @classmethod
    def from_client(cls, client: Any, settings: Settings | None = None, debug: bool = False) -> "CloudStorage":
        """Wrap a pre-created client."""
        return cls(client, settings=settings, debug=debug)

    def _blob(self, bucket_name: str, file_path: str) -> Any:
        return self.client.bucket(bucket_name).blob(file_path)

    async def ping(self, bucket_name: str | None = None) -> None:
        await asyncio.to_thread(self.client.bucket(bucket_name or "non-existing-for-sure").exists)

    async def get_bucket_names(self) -> list[str]:
        buckets = await asyncio.to_thread(lambda: list(self.client.list_buckets()))
        return [b.name for b in buckets]

    async def get_bucket_names_stream(self) -> AsyncIterator[str]:
        async for bucket in iterate_in_thread(self.client.list_buckets()):
            yield bucket.name

    async def file_exists(self, bucket_name: str, file_path: str) -> bool:
        return await asyncio.to_thread(self._blob(bucket_name, file_path).exists)

    async def get_file(self, bucket_name: str, file_path: str) -> bytes | None:
        try:
            return await asyncio.to_thread(self._blob(bucket_name, file_path).download_as_bytes)
        except NotFound:
            return None

    async def save_file(self, bucket_name: str, file_path: str, content: bytes) -> None:
        await asyncio.to_thread(self._blob(bucket_name, file_path).upload_from_string, content)

    async def upload_file(self, local_file_path: str, bucket_name: str, bucket_file_path: str) -> None:
        await asyncio.to_thread(self._blob(bucket_name, bucket_file_path).upload_from_filename, local_file_path)

    async def delete_paths(self, bucket_name: str, prefixes: list[str]) -> None:
        failed: list[str] = []

        async def _delete(blob: Any) -> None:
            try:
                await asyncio.to_thread(blob.delete)
            except GoogleAPIError as e:
                # Keep going, like a forced delete
                failed.append(blob.name)
                logger.warning(f"Failed to delete {bucket_name}/{blob.name}: {e}")

        async def _delete_prefix(prefix: str) -> None:
            blobs = await asyncio.to_thread(lambda: list(self.client.list_blobs(bucket_name, prefix=prefix)))
            await p_map(blobs, _delete, self.settings.DELETE_CONCURRENCY)

        await p_map(prefixes, _delete_prefix, self.settings.DELETE_CONCURRENCY)
        if failed:
            logger.warning(f"delete_paths {bucket_name}: {len(failed)} objects could not be deleted")

    async def delete_files(self, bucket_name: str, file_paths: list[str]) -> None:
        async def _delete(file_path: str) -> None:
            try:
                await asyncio.to_thread(self._blob(bucket_name, file_path).delete)
            except NotFound:
                pass

        await p_map(file_paths, _delete, self.settings.DELETE_CONCURRENCY)

    async def get_file_names(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> list[str]:
        opt = opt or GetFilesOptions()
        blobs = await asyncio.to_thread(lambda: list(self.client.list_blobs(bucket_name, prefix=opt.prefix or None)))
        return [name for _, name in filter_file_names(blobs, opt, key=lambda b: b.name)]

    async def get_file_names_stream(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> AsyncIterator[str]:
        opt = opt or GetFilesOptions()
        blobs = iterate_in_thread(self.client.list_blobs(bucket_name, prefix=opt.prefix or None))
        async for _, name in filter_file_names_stream(blobs, opt, key=lambda b: b.name):
            yield name

    async def get_files_stream(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> AsyncIterator[FileEntry]:
        opt = opt or GetFilesOptions()
        blobs = iterate_in_thread(self.client.list_blobs(bucket_name, prefix=opt.prefix or None))

        async def _download(matched: tuple[Any, str]) -> FileEntry:
            blob, name = matched
            content = await asyncio.to_thread(blob.download_as_bytes)
            return FileEntry(file_path=name, content=content)

        async for entry in map_stream(
            filter_file_names_stream(blobs, opt, key=lambda b: b.name),
            _download,
            self.settings.DOWNLOAD_CONCURRENCY,
        ):
            yield entry

    async def get_file_read_stream(self, bucket_name: str, file_path: str) -> AsyncIterator[bytes]:
        fileobj = await asyncio.to_thread(self._blob(bucket_name, file_path).open, "rb")
        try:
            while True:
                data = await asyncio.to_thread(fileobj.read, READ_CHUNK_SIZE)
                if not data:
                    break
                yield data
        finally:
            await asyncio.to_thread(fileobj.close)

    def get_file_write_stream(self, bucket_name: str, file_path: str) -> WriteStream:
        return CloudWriteStream(self._blob(bucket_name, file_path))

    async def set_file_visibility(self, bucket_name: str, file_path: str, is_public: bool) -> None:
        blob = self._blob(bucket_name, file_path)
        await asyncio.to_thread(blob.make_public if is_public else blob.make_private)

    async def get_file_visibility(self, bucket_name: str, file_path: str) -> bool:
        blob = self._blob(bucket_name, file_path)

        def _is_public() -> bool:
            blob.acl.reload()
            return "READER" in blob.acl.all().get_roles()

        return await asyncio.to_thread(_is_public)

    async def copy_file(
        self,
        from_bucket: str,
        from_path: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        source_bucket = self.client.bucket(from_bucket)
        await asyncio.to_thread(
            source_bucket.copy_blob,
            source_bucket.blob(from_path),
            self.client.bucket(to_bucket or from_bucket),
            to_path,
        )

    async def move_file(
        self,
        from_bucket: str,
        from_path: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        if (to_bucket or from_bucket, to_path) == (from_bucket, from_path):
            return
        await self.copy_file(from_bucket, from_path, to_path, to_bucket)
        await asyncio.to_thread(self._blob(from_bucket, from_path).delete)

    async def move_path(
        self,
        from_bucket: str,
        from_prefix: str,
        to_prefix: str,
        to_bucket: str | None = None,
    ) -> None:
        self.check_move_prefixes(from_prefix, to_prefix)
        names = [
            b.name
            for b in await asyncio.to_thread(lambda: list(self.client.list_blobs(from_bucket, prefix=from_prefix)))
        ]

        async def _move(name: str) -> None:
            await self.move_file(from_bucket, name, to_prefix + name[len(from_prefix):], to_bucket)

        await p_map(names, _move, self.settings.SAVE_CONCURRENCY)
        logger.info(f"Moved {len(names)} objects: {from_bucket}/{from_prefix} -> {to_bucket or from_bucket}/{to_prefix}")

    async def get_signed_url(self, bucket_name: str, file_path: str, expires: ExpiresInput) -> str:
        expiration = resolve_expiry(expires)
        return await asyncio.to_thread(
            self._blob(bucket_name, file_path).generate_signed_url,
            version="v4",
            expiration=expiration,
            method="GET",
        )

    async def compose(
        self,
        bucket_name: str,
        file_paths: list[str],
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        if len(file_paths) > MAX_COMPOSE_SOURCES:
            raise ValueError(f"compose accepts at most {MAX_COMPOSE_SOURCES} sources, got {len(file_paths)}")
        source_bucket = self.client.bucket(bucket_name)
        destination = self._blob(to_bucket or bucket_name, to_path)
        await asyncio.to_thread(destination.compose, [source_bucket.blob(p) for p in file_paths])
