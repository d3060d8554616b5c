"""In-memory storage backend.

Reference implementation of the storage contract for tests. State lives
on the instance: ``data[bucket_name][file_path] = bytes`` and a parallel
``public_map`` for visibility. No internal locking (single-writer use).
"""

from __future__ import annotations

import hashlib
from collections.abc import AsyncIterator
from pathlib import Path
from urllib.parse import urlencode

from common_storage.backends.base import CommonStorage, WriteStream
from common_storage.config import MAX_COMPOSE_SOURCES, Settings
from common_storage.exceptions import ObjectNotFoundError
from common_storage.models import FileEntry, GetFilesOptions, SignedUrlParams
from common_storage.naming import filter_file_names
from common_storage.utils.expiry import ExpiresInput, resolve_expiry

READ_CHUNK_SIZE = 64 * 1024


class InMemoryWriteStream(WriteStream):
    """Buffers written chunks and saves them as one object on close."""

    def __init__(self, storage: "InMemoryStorage", bucket_name: str, file_path: str) -> None:
        self.storage = storage
        self.bucket_name = bucket_name
        self.file_path = file_path
        self._chunks: list[bytes] = []
        self._closed = False

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise ValueError("write to closed stream")
        self._chunks.append(bytes(data))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.storage.save_file(self.bucket_name, self.file_path, b"".join(self._chunks))


class InMemoryStorage(CommonStorage):
    """Storage contract backed by nested dicts.

    Attributes:
        data: Object contents by bucket and path.
        public_map: Visibility flags by bucket and path.
        max_compose_sources: Fan-in limit enforced by compose().
    """

    def __init__(
        self,
        settings: Settings | None = None,
        max_compose_sources: int = MAX_COMPOSE_SOURCES,
    ) -> None:
        super().__init__(settings)
        self.data: dict[str, dict[str, bytes]] = {}
        self.public_map: dict[str, dict[str, bool]] = {}
        self.max_compose_sources = max_compose_sources

    def _bucket(self, bucket_name: str) -> dict[str, bytes]:
        return self.data.setdefault(bucket_name, {})

    def _require(self, bucket_name: str, file_path: str) -> bytes:
        content = self.data.get(bucket_name, {}).get(file_path)
        if content is None:
            raise ObjectNotFoundError(bucket_name, file_path)
        return content

    async def ping(self, bucket_name: str | None = None) -> None:
        return None

    async def get_bucket_names(self) -> list[str]:
        return list(self.data)

    async def get_bucket_names_stream(self) -> AsyncIterator[str]:
        for name in list(self.data):
            yield name

    async def file_exists(self, bucket_name: str, file_path: str) -> bool:
        return file_path in self.data.get(bucket_name, {})

    async def get_file(self, bucket_name: str, file_path: str) -> bytes | None:
        return self.data.get(bucket_name, {}).get(file_path)

    async def save_file(self, bucket_name: str, file_path: str, content: bytes) -> None:
        self._bucket(bucket_name)[file_path] = bytes(content)

    async def upload_file(self, local_file_path: str, bucket_name: str, bucket_file_path: str) -> None:
        self._bucket(bucket_name)[bucket_file_path] = Path(local_file_path).read_bytes()

    async def delete_paths(self, bucket_name: str, prefixes: list[str]) -> None:
        bucket = self.data.get(bucket_name, {})
        for file_path in list(bucket):
            if any(file_path.startswith(prefix) for prefix in prefixes):
                del bucket[file_path]

    async def delete_files(self, bucket_name: str, file_paths: list[str]) -> None:
        bucket = self.data.get(bucket_name)
        if bucket is None:
            return
        for file_path in file_paths:
            bucket.pop(file_path, None)

    async def get_file_names(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> list[str]:
        opt = opt or GetFilesOptions()
        return [name for _, name in filter_file_names(list(self.data.get(bucket_name, {})), opt)]

    async def get_file_names_stream(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> AsyncIterator[str]:
        opt = opt or GetFilesOptions()
        for _, name in filter_file_names(list(self.data.get(bucket_name, {})), opt):
            yield name

    async def get_files_stream(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> AsyncIterator[FileEntry]:
        opt = opt or GetFilesOptions()
        items = list(self.data.get(bucket_name, {}).items())
        for (_, content), name in filter_file_names(items, opt, key=lambda item: item[0]):
            yield FileEntry(file_path=name, content=content)

    async def get_file_read_stream(self, bucket_name: str, file_path: str) -> AsyncIterator[bytes]:
        content = self._require(bucket_name, file_path)
        for start in range(0, len(content), READ_CHUNK_SIZE):
            yield content[start:start + READ_CHUNK_SIZE]

    def get_file_write_stream(self, bucket_name: str, file_path: str) -> WriteStream:
        return InMemoryWriteStream(self, bucket_name, file_path)

    async def set_file_visibility(self, bucket_name: str, file_path: str, is_public: bool) -> None:
        self.public_map.setdefault(bucket_name, {})[file_path] = is_public

    async def get_file_visibility(self, bucket_name: str, file_path: str) -> bool:
        return self.public_map.get(bucket_name, {}).get(file_path, False)

    async def copy_file(
        self,
        from_bucket: str,
        from_path: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        content = self._require(from_bucket, from_path)
        self._bucket(to_bucket or from_bucket)[to_path] = content

    async def move_file(
        self,
        from_bucket: str,
        from_path: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        content = self._require(from_bucket, from_path)
        del self.data[from_bucket][from_path]
        self._bucket(to_bucket or from_bucket)[to_path] = content

    async def move_path(
        self,
        from_bucket: str,
        from_prefix: str,
        to_prefix: str,
        to_bucket: str | None = None,
    ) -> None:
        self.check_move_prefixes(from_prefix, to_prefix)
        source = self._bucket(from_bucket)
        target = self._bucket(to_bucket or from_bucket)

        for file_path in [p for p in source if p.startswith(from_prefix)]:
            content = source.pop(file_path)
            target[to_prefix + file_path[len(from_prefix):]] = content

    async def get_signed_url(self, bucket_name: str, file_path: str, expires: ExpiresInput) -> str:
        content = self._require(bucket_name, file_path)
        params = SignedUrlParams(
            expires=int(resolve_expiry(expires).timestamp()),
            signature=hashlib.md5(content).hexdigest(),
        )
        return f"https://{self.settings.SIGNED_URL_HOST}/{bucket_name}/{file_path}?{urlencode(params.model_dump())}"

    async def compose(
        self,
        bucket_name: str,
        file_paths: list[str],
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        if len(file_paths) > self.max_compose_sources:
            raise ValueError(
                f"compose accepts at most {self.max_compose_sources} sources, got {len(file_paths)}"
            )
        content = b"".join(self._require(bucket_name, p) for p in file_paths)
        self._bucket(to_bucket or bucket_name)[to_path] = content
