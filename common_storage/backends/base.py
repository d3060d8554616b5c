"""Abstract base class for storage backends.

Modelled after bucket-based object stores: a Bucket is identified by its
name and a Path identifies an object within it. Paths must not start
with ``/``; paths ending with ``/`` are folder markers and are never
returned by listings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from common_storage.compose import Composer
from common_storage.config import Settings, get_settings
from common_storage.models import FileEntry, GetFilesOptions
from common_storage.utils.expiry import ExpiresInput


class WriteStream(ABC):
    """Async byte sink for uploading an object without full buffering.

    The object becomes visible when the stream is closed. Used as an async
    context manager, the stream is only closed (committed) on success.
    """

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Append bytes to the object."""

    @abstractmethod
    async def close(self) -> None:
        """Finish the upload."""

    async def __aenter__(self) -> "WriteStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.close()


class CommonStorage(ABC):
    """Storage contract every backend implements.

    Backends provide the bounded native ``compose``; unbounded
    ``combine_files``/``combine`` are implemented here on top of it.

    Attributes:
        settings: Storage settings (batch size, concurrency limits).
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @abstractmethod
    async def ping(self, bucket_name: str | None = None) -> None:
        """Ensure credentials and connectivity are fine. Idempotent.

        Args:
            bucket_name: Bucket to probe, when permissions are bucket-scoped.
        """

    @abstractmethod
    async def get_bucket_names(self) -> list[str]:
        """List bucket names."""

    @abstractmethod
    def get_bucket_names_stream(self) -> AsyncIterator[str]:
        """Stream bucket names."""

    @abstractmethod
    async def file_exists(self, bucket_name: str, file_path: str) -> bool:
        """Check if an object exists."""

    @abstractmethod
    async def get_file(self, bucket_name: str, file_path: str) -> bytes | None:
        """Download an object.

        Returns:
            Object content, or None if the object does not exist.
        """

    @abstractmethod
    async def save_file(self, bucket_name: str, file_path: str, content: bytes) -> None:
        """Write (overwrite) an object."""

    @abstractmethod
    async def upload_file(self, local_file_path: str, bucket_name: str, bucket_file_path: str) -> None:
        """Upload a local file to the bucket."""

    async def delete_path(self, bucket_name: str, prefix: str) -> None:
        """Recursively delete every object whose path starts with ``prefix``."""
        await self.delete_paths(bucket_name, [prefix])

    @abstractmethod
    async def delete_paths(self, bucket_name: str, prefixes: list[str]) -> None:
        """Delete every object matching any prefix.

        Failures on individual objects are logged and skipped so the rest of
        the batch is still deleted.
        """

    @abstractmethod
    async def delete_files(self, bucket_name: str, file_paths: list[str]) -> None:
        """Delete objects by exact path. Missing objects are ignored."""

    @abstractmethod
    async def get_file_names(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> list[str]:
        """List object paths.

        ``prefix`` filters with startsWith semantics, so sub-folders are
        included and ``foo`` also matches ``foobar``.
        """

    @abstractmethod
    def get_file_names_stream(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> AsyncIterator[str]:
        """Lazily stream object paths, same filtering as get_file_names()."""

    @abstractmethod
    def get_files_stream(
        self,
        bucket_name: str,
        opt: GetFilesOptions | None = None,
    ) -> AsyncIterator[FileEntry]:
        """Lazily stream objects with their content."""

    @abstractmethod
    def get_file_read_stream(self, bucket_name: str, file_path: str) -> AsyncIterator[bytes]:
        """Stream an object's bytes in chunks."""

    @abstractmethod
    def get_file_write_stream(self, bucket_name: str, file_path: str) -> WriteStream:
        """Open a write stream to an object."""

    @abstractmethod
    async def set_file_visibility(self, bucket_name: str, file_path: str, is_public: bool) -> None:
        """Make an object public or private."""

    @abstractmethod
    async def get_file_visibility(self, bucket_name: str, file_path: str) -> bool:
        """Return True if an object is public."""

    @abstractmethod
    async def copy_file(
        self,
        from_bucket: str,
        from_path: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        """Copy an object. ``to_bucket`` defaults to ``from_bucket``."""

    @abstractmethod
    async def move_file(
        self,
        from_bucket: str,
        from_path: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        """Move an object. ``to_bucket`` defaults to ``from_bucket``."""

    @abstractmethod
    async def move_path(
        self,
        from_bucket: str,
        from_prefix: str,
        to_prefix: str,
        to_bucket: str | None = None,
    ) -> None:
        """Move a "directory" with all its contents.

        Both prefixes must end with ``/``.

        Raises:
            ValueError: If a prefix does not end with ``/``.
        """

    @abstractmethod
    async def get_signed_url(self, bucket_name: str, file_path: str, expires: ExpiresInput) -> str:
        """Create a URL allowing its bearer to read the object until ``expires``."""

    @abstractmethod
    async def compose(
        self,
        bucket_name: str,
        file_paths: list[str],
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        """Native compose of a bounded number of objects into one.

        Sources are left in place. Backends reject more than
        ``MAX_COMPOSE_SOURCES`` sources.
        """

    async def combine_files(
        self,
        bucket_name: str,
        file_paths: list[str],
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        """Combine any number of objects into ``to_path``, then delete the sources."""
        await Composer.from_storage(self).combine_files(bucket_name, file_paths, to_path, to_bucket)

    async def combine(
        self,
        bucket_name: str,
        prefix: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        """Like combine_files(), for every object under ``prefix``."""
        await Composer.from_storage(self).combine(bucket_name, prefix, to_path, to_bucket)

    @staticmethod
    def check_move_prefixes(from_prefix: str, to_prefix: str) -> None:
        if not from_prefix.endswith("/"):
            raise ValueError("from_prefix should end with `/`")
        if not to_prefix.endswith("/"):
            raise ValueError("to_prefix should end with `/`")
