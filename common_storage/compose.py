"""Recursive batched composition of many objects into one.

Native compose accepts a bounded number of sources (32). Longer lists are
split into consecutive chunks; each chunk is composed into an intermediate
object named ``temp_{depth}_{index}`` and its sources are deleted. The
intermediate objects, kept in chunk order, become the input of the next
level. At most ``batch_size ** (max_depth + 1)`` objects can be combined.

Examples:
    >>> composer = Composer.from_storage(storage)
    >>> await composer.combine_files("bucket", paths, "out/all.ndjson")

Failure semantics: an error in any chunk aborts the whole operation.
Chunks already composed and deleted are not restored.
"""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING

from common_storage.config import MAX_COMPOSE_SOURCES, MAX_RECURSION_DEPTH
from common_storage.exceptions import RecursionLimitExceededError
from common_storage.models import GetFilesOptions
from common_storage.naming import intermediate_file_name, is_intermediate_file_name
from common_storage.utils.concurrency import p_map

if TYPE_CHECKING:
    from common_storage.backends.base import CommonStorage

logger = logging.getLogger(__name__)


def chunk(items: list[str], size: int) -> list[list[str]]:
    """Split a list into consecutive chunks of at most ``size`` items."""
    return [items[i:i + size] for i in range(0, len(items), size)]


def required_depth(count: int, batch_size: int) -> int:
    """Number of recursion levels needed to compose ``count`` objects.

    Depth 0 means a single native compose is enough.
    """
    depth = 0
    while count > batch_size:
        count = math.ceil(count / batch_size)
        depth += 1
    return depth


class Composer:
    """Composition engine bound to one storage backend.

    Attributes:
        storage: Backend providing native compose and delete_files.
        batch_size: Maximum sources per native compose call.
        max_depth: Deepest recursion level allowed.
        concurrency: Chunks composed in parallel.
        debug: Log per-level progress at INFO instead of DEBUG.
    """

    def __init__(
        self,
        storage: CommonStorage,
        batch_size: int = MAX_COMPOSE_SOURCES,
        max_depth: int = MAX_RECURSION_DEPTH,
        concurrency: int = 8,
        debug: bool = False,
    ) -> None:
        if not 2 <= batch_size <= MAX_COMPOSE_SOURCES:
            raise ValueError(f"batch_size must be between 2 and {MAX_COMPOSE_SOURCES}, got {batch_size}")
        self.storage = storage
        self.batch_size = batch_size
        self.max_depth = max_depth
        self.concurrency = concurrency
        self.debug = debug

    @classmethod
    def from_storage(cls, storage: CommonStorage) -> "Composer":
        """Create a Composer configured from the storage's settings."""
        settings = storage.settings
        return cls(
            storage,
            batch_size=settings.COMPOSE_BATCH_SIZE,
            max_depth=settings.COMPOSE_MAX_RECURSION_DEPTH,
            concurrency=settings.DELETE_CONCURRENCY,
            debug=settings.DEBUG or getattr(storage, "debug", False),
        )

    def _log(self, message: str) -> None:
        logger.log(logging.INFO if self.debug else logging.DEBUG, message)

    async def combine_files(
        self,
        bucket_name: str,
        file_paths: list[str],
        to_path: str,
        to_bucket: str | None = None,
        depth: int = 0,
    ) -> None:
        """Combine ``file_paths`` (in order) into ``to_path`` and delete them.

        Args:
            bucket_name: Bucket holding the sources.
            file_paths: Ordered source paths.
            to_path: Destination path.
            to_bucket: Destination bucket (defaults to ``bucket_name``).
            depth: Current recursion level, internal.

        Raises:
            RecursionLimitExceededError: If more than ``max_depth`` levels are needed.
            ValueError: If a path is named like an intermediate (``temp_<depth>_<index>``)
                and more than one batch is needed.
        """
        if not file_paths:
            self._log(f"[{depth}] Nothing to compose, returning early")
            return

        if depth > self.max_depth:
            raise RecursionLimitExceededError(depth, self.max_depth)

        if depth == 0:
            self._check_inputs(file_paths, to_path)

        to_bucket = to_bucket or bucket_name
        self._log(f"[{depth}] Will compose {len(file_paths)} files, by batches of {self.batch_size}")

        if len(file_paths) <= self.batch_size:
            await self.storage.compose(bucket_name, file_paths, to_path, to_bucket)
            self._log(f"[{depth}] Composed into {to_bucket}/{to_path}")
            # The destination may be one of its own sources; it now holds the result
            consumed = [p for p in file_paths if not (to_bucket == bucket_name and p == to_path)]
            await self.storage.delete_files(bucket_name, consumed)
            return

        started = time.perf_counter()

        async def _compose_batch(indexed: tuple[int, list[str]]) -> str:
            i, batch = indexed
            self._log(f"[{depth}] Composing batch {i + 1}...")
            intermediate = intermediate_file_name(depth, i)
            await self.storage.compose(bucket_name, batch, intermediate, to_bucket)
            await self.storage.delete_files(bucket_name, batch)
            return intermediate

        # p_map keeps input order, so intermediates follow chunk order
        intermediates = await p_map(
            list(enumerate(chunk(file_paths, self.batch_size))),
            _compose_batch,
            self.concurrency,
        )
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        self._log(f"[{depth}] Batch composed into {len(intermediates)} files, in {elapsed_ms}ms")

        await self.combine_files(to_bucket, intermediates, to_path, to_bucket, depth + 1)

    async def combine(
        self,
        bucket_name: str,
        prefix: str,
        to_path: str,
        to_bucket: str | None = None,
    ) -> None:
        """List every object under ``prefix`` and combine them."""
        file_paths = await self.storage.get_file_names(bucket_name, GetFilesOptions(prefix=prefix))
        await self.combine_files(bucket_name, file_paths, to_path, to_bucket)

    def _check_inputs(self, file_paths: list[str], to_path: str) -> None:
        """Fail before any I/O on reserved names or an impossible depth.

        Intermediate names are only reserved when intermediates will be written.
        """
        needed = required_depth(len(file_paths), self.batch_size)
        if needed > self.max_depth:
            raise RecursionLimitExceededError(needed, self.max_depth)

        if needed == 0:
            return

        reserved = [p for p in [*file_paths, to_path] if is_intermediate_file_name(p)]
        if reserved:
            raise ValueError(f"Paths use the reserved intermediate names: {reserved[:5]}")
