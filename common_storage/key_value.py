"""Key-value database backed by a storage backend.

Each table is a folder and each row a file:

    path = f"{prefix}/{id}"    content = value bytes

A table may be given as ``"SomeBucket.SomeTable"`` to override the
configured bucket. Ids are not escaped, so an id containing ``/`` is
stored as nested path segments.

Examples:
    >>> db = StorageKeyValueDB(storage, bucket_name="kv")
    >>> await db.save_batch("users", [("u1", b"...")])
    >>> await db.get_by_ids("users", ["u1", "u2"])
    [('u1', b'...')]
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from common_storage.backends.base import CommonStorage
from common_storage.exceptions import UnsupportedOperationError
from common_storage.models import GetFilesOptions
from common_storage.naming import join_path
from common_storage.utils.concurrency import p_map

logger = logging.getLogger(__name__)

KeyValueTuple = tuple[str, bytes]


@dataclass(frozen=True)
class TableLocation:
    """Where a table's rows are stored."""

    bucket_name: str
    prefix: str

    def path(self, id: str) -> str:
        return join_path(self.prefix, id)

    @property
    def folder(self) -> str:
        """Listing prefix that matches only this table's rows."""
        return self.prefix + "/"


def resolve_table(table: str, default_bucket: str) -> TableLocation:
    """Resolve a table name to its bucket and prefix (no I/O).

    ``"bucket.table"`` overrides the bucket; anything else (including
    names with more than one dot) is used as the prefix as-is.
    """
    parts = table.split(".")
    if len(parts) == 2 and all(parts):
        return TableLocation(bucket_name=parts[0], prefix=parts[1])
    return TableLocation(bucket_name=default_bucket, prefix=table)


class StorageKeyValueDB:
    """Key-value database where tables are folders and values are files.

    Attributes:
        storage: Underlying storage backend.
        bucket_name: Default bucket for tables without an override.
    """

    def __init__(self, storage: CommonStorage, bucket_name: str) -> None:
        self.storage = storage
        self.bucket_name = bucket_name

    @property
    def concurrency(self) -> int:
        return self.storage.settings.SAVE_CONCURRENCY

    def table_location(self, table: str) -> TableLocation:
        return resolve_table(table, self.bucket_name)

    async def ping(self) -> None:
        await self.storage.ping(self.bucket_name)

    async def create_table(self, table: str, **kwargs) -> None:
        """Tables are virtual folders, nothing to create."""
        return None

    async def get_by_ids(self, table: str, ids: list[str]) -> list[KeyValueTuple]:
        """Return (id, value) for the ids that exist, in request order.

        Missing ids are omitted rather than returned with an empty value.
        """
        loc = self.table_location(table)

        async def _get(id: str) -> bytes | None:
            return await self.storage.get_file(loc.bucket_name, loc.path(id))

        values = await p_map(ids, _get, self.concurrency)
        return [(id, value) for id, value in zip(ids, values) if value is not None]

    async def save_batch(self, table: str, entries: list[KeyValueTuple]) -> None:
        loc = self.table_location(table)

        async def _save(entry: KeyValueTuple) -> None:
            id, value = entry
            await self.storage.save_file(loc.bucket_name, loc.path(id), value)

        await p_map(entries, _save, self.concurrency)
        logger.debug(f"Saved {len(entries)} rows to {loc.bucket_name}/{loc.prefix}")

    async def delete_by_ids(self, table: str, ids: list[str]) -> None:
        loc = self.table_location(table)
        await self.storage.delete_files(loc.bucket_name, [loc.path(id) for id in ids])

    async def stream_ids(self, table: str, limit: int | None = None) -> AsyncIterator[str]:
        loc = self.table_location(table)
        opt = GetFilesOptions(prefix=loc.folder, full_paths=False, limit=limit)
        async for id in self.storage.get_file_names_stream(loc.bucket_name, opt):
            yield id

    async def stream_values(self, table: str, limit: int | None = None) -> AsyncIterator[bytes]:
        loc = self.table_location(table)
        opt = GetFilesOptions(prefix=loc.folder, limit=limit)
        async for entry in self.storage.get_files_stream(loc.bucket_name, opt):
            yield entry.content

    async def stream_entries(self, table: str, limit: int | None = None) -> AsyncIterator[KeyValueTuple]:
        loc = self.table_location(table)
        opt = GetFilesOptions(prefix=loc.folder, full_paths=False, limit=limit)
        async for entry in self.storage.get_files_stream(loc.bucket_name, opt):
            yield entry.file_path, entry.content

    async def count(self, table: str) -> int:
        loc = self.table_location(table)
        return len(await self.storage.get_file_names(loc.bucket_name, GetFilesOptions(prefix=loc.folder)))

    async def increment(self, table: str, id: str, by: int = 1) -> int:
        """Not supported: a blob overwrite cannot increment atomically."""
        raise UnsupportedOperationError("increment is not supported by StorageKeyValueDB")
