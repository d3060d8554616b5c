"""Convenience wrapper binding a storage backend to one bucket.

Re-exposes the storage contract without the bucket argument and adds
decode helpers, ``require_*`` variants and bulk helpers.

Examples:
    >>> bucket = StorageBucket(storage, "my-bucket")
    >>> await bucket.save_file("config.json", b'{"a": 1}')
    >>> await bucket.require_file_as_json("config.json")
    {'a': 1}
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, NoReturn

from common_storage.backends.base import CommonStorage, WriteStream
from common_storage.exceptions import RequiredFileError
from common_storage.models import FileEntry, GetFilesOptions, JsonFileEntry
from common_storage.utils.concurrency import p_map
from common_storage.utils.expiry import ExpiresInput

logger = logging.getLogger(__name__)


class StorageBucket:
    """Storage operations scoped to a single bucket.

    Attributes:
        storage: Underlying storage backend.
        bucket_name: Bucket all operations apply to.
    """

    def __init__(self, storage: CommonStorage, bucket_name: str) -> None:
        self.storage = storage
        self.bucket_name = bucket_name

    @property
    def concurrency(self) -> int:
        return self.storage.settings.SAVE_CONCURRENCY

    async def ping(self, bucket_name: str | None = None) -> None:
        await self.storage.ping(bucket_name or self.bucket_name)

    async def file_exists(self, file_path: str) -> bool:
        return await self.storage.file_exists(self.bucket_name, file_path)

    async def get_file(self, file_path: str) -> bytes | None:
        return await self.storage.get_file(self.bucket_name, file_path)

    async def get_file_as_string(self, file_path: str) -> str | None:
        content = await self.storage.get_file(self.bucket_name, file_path)
        if content is None:
            return None
        return content.decode("utf-8")

    async def get_file_as_json(self, file_path: str) -> Any | None:
        content = await self.storage.get_file(self.bucket_name, file_path)
        if content is None:
            return None
        return json.loads(content)

    async def require_file(self, file_path: str) -> bytes:
        """Like get_file(), but raises RequiredFileError when absent."""
        content = await self.get_file(file_path)
        if content is None:
            self._raise_required(file_path)
        return content

    async def require_file_as_string(self, file_path: str) -> str:
        text = await self.get_file_as_string(file_path)
        if text is None:
            self._raise_required(file_path)
        return text

    async def require_file_as_json(self, file_path: str) -> Any:
        content = await self.require_file(file_path)
        return json.loads(content)

    def _raise_required(self, file_path: str) -> NoReturn:
        raise RequiredFileError(self.bucket_name, file_path)

    async def get_file_contents(self, paths: list[str]) -> list[bytes]:
        """Download several files; absent files are dropped, empty files are kept."""
        contents = await p_map(paths, self.get_file, self.concurrency)
        return [c for c in contents if c is not None]

    async def get_file_contents_as_json(self, paths: list[str]) -> list[Any]:
        """Download and decode several JSON files; absent files are dropped.

        Only absence drops a file. Falsy decoded values (``0``, ``""``,
        ``false``, ``[]``) are real content and are kept; a stored ``null``
        decodes to None and is dropped like an absent file.
        """
        contents = await p_map(paths, self.get_file_as_json, self.concurrency)
        return [c for c in contents if c is not None]

    async def get_file_entries(self, paths: list[str]) -> list[FileEntry]:
        """Download several files as entries; absent files are dropped."""
        contents = await p_map(paths, self.get_file, self.concurrency)
        return [
            FileEntry(file_path=path, content=content)
            for path, content in zip(paths, contents)
            if content is not None
        ]

    async def get_file_entries_as_json(self, paths: list[str]) -> list[JsonFileEntry]:
        """Like get_file_contents_as_json(), keeping the paths. Falsy values are kept."""
        contents = await p_map(paths, self.get_file_as_json, self.concurrency)
        return [
            JsonFileEntry(file_path=path, content=content)
            for path, content in zip(paths, contents)
            if content is not None
        ]

    async def save_file(self, file_path: str, content: bytes) -> None:
        await self.storage.save_file(self.bucket_name, file_path, content)

    async def save_files(self, entries: list[FileEntry]) -> None:
        async def _save(entry: FileEntry) -> None:
            await self.storage.save_file(self.bucket_name, entry.file_path, entry.content)

        await p_map(entries, _save, self.concurrency)
        logger.debug(f"Saved {len(entries)} files to {self.bucket_name}")

    async def upload_file(self, local_file_path: str, bucket_file_path: str) -> None:
        await self.storage.upload_file(local_file_path, self.bucket_name, bucket_file_path)

    async def delete_path(self, prefix: str) -> None:
        """Recursively delete all files under ``prefix``."""
        await self.storage.delete_path(self.bucket_name, prefix)

    async def delete_paths(self, prefixes: list[str]) -> None:
        await self.storage.delete_paths(self.bucket_name, prefixes)

    async def delete_files(self, file_paths: list[str]) -> None:
        await self.storage.delete_files(self.bucket_name, file_paths)

    async def get_file_names(
        self,
        prefix: str = "",
        full_paths: bool = True,
        limit: int | None = None,
    ) -> list[str]:
        """List file paths starting with ``prefix`` (sub-folders included)."""
        opt = GetFilesOptions(prefix=prefix, full_paths=full_paths, limit=limit)
        return await self.storage.get_file_names(self.bucket_name, opt)

    def get_file_names_stream(
        self,
        prefix: str = "",
        full_paths: bool = True,
        limit: int | None = None,
    ) -> AsyncIterator[str]:
        opt = GetFilesOptions(prefix=prefix, full_paths=full_paths, limit=limit)
        return self.storage.get_file_names_stream(self.bucket_name, opt)

    def get_files_stream(
        self,
        prefix: str = "",
        full_paths: bool = True,
        limit: int | None = None,
    ) -> AsyncIterator[FileEntry]:
        opt = GetFilesOptions(prefix=prefix, full_paths=full_paths, limit=limit)
        return self.storage.get_files_stream(self.bucket_name, opt)

    def get_file_read_stream(self, file_path: str) -> AsyncIterator[bytes]:
        return self.storage.get_file_read_stream(self.bucket_name, file_path)

    def get_file_write_stream(self, file_path: str) -> WriteStream:
        return self.storage.get_file_write_stream(self.bucket_name, file_path)

    async def set_file_visibility(self, file_path: str, is_public: bool) -> None:
        await self.storage.set_file_visibility(self.bucket_name, file_path, is_public)

    async def get_file_visibility(self, file_path: str) -> bool:
        return await self.storage.get_file_visibility(self.bucket_name, file_path)

    async def copy_file(self, from_path: str, to_path: str, to_bucket: str | None = None) -> None:
        await self.storage.copy_file(self.bucket_name, from_path, to_path, to_bucket)

    async def move_file(self, from_path: str, to_path: str, to_bucket: str | None = None) -> None:
        await self.storage.move_file(self.bucket_name, from_path, to_path, to_bucket)

    async def move_path(self, from_prefix: str, to_prefix: str, to_bucket: str | None = None) -> None:
        await self.storage.move_path(self.bucket_name, from_prefix, to_prefix, to_bucket)

    async def combine_files(self, file_paths: list[str], to_path: str, to_bucket: str | None = None) -> None:
        await self.storage.combine_files(self.bucket_name, file_paths, to_path, to_bucket)

    async def combine(self, prefix: str, to_path: str, to_bucket: str | None = None) -> None:
        await self.storage.combine(self.bucket_name, prefix, to_path, to_bucket)

    async def get_signed_url(self, file_path: str, expires: ExpiresInput) -> str:
        return await self.storage.get_signed_url(self.bucket_name, file_path, expires)
