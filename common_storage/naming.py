"""Path normalization and naming helpers for blob storage.

Listing and streaming share ``filter_file_names`` so both access modes
return exactly the same names.

Examples:
    >>> from common_storage.naming import intermediate_file_name, normalize_file_name
    >>> normalize_file_name("test/subdir/file_1.json", full_paths=False)
    'file_1.json'
    >>> normalize_file_name("test/subdir/", full_paths=True) is None
    True
    >>> intermediate_file_name(depth=1, index=3)
    'temp_1_3'
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Iterable, Iterator
from typing import TypeVar

from common_storage.models import GetFilesOptions

T = TypeVar("T")

INTERMEDIATE_PREFIX = "temp_"
INTERMEDIATE_PATTERN = re.compile(rf"{INTERMEDIATE_PREFIX}\d+_\d+")


def is_folder_marker(path: str) -> bool:
    """Check if a path is a virtual folder marker (ends with ``/``)."""
    return path.endswith("/")


def normalize_file_name(path: str, full_paths: bool = True) -> str | None:
    """Normalize a stored path for listing.

    Args:
        path: Path as stored by the backend.
        full_paths: Keep the full path, or strip everything up to the last ``/``.

    Returns:
        Normalized name, or None if the path is a folder marker.
    """
    if full_paths:
        if is_folder_marker(path):
            return None
        return path

    name = path.rsplit("/", 1)[-1]
    return name or None


def match_file_name(path: str, opt: GetFilesOptions) -> str | None:
    """Apply prefix filter, folder-marker exclusion and normalization to one path.

    Returns:
        The name to list, or None if the path is filtered out.
    """
    if not path.startswith(opt.prefix):
        return None
    return normalize_file_name(path, opt.full_paths)


def filter_file_names(
    items: Iterable[T],
    opt: GetFilesOptions,
    key=lambda item: item,
) -> Iterator[tuple[T, str]]:
    """Filter stored paths for a listing, honoring ``opt.limit``.

    Args:
        items: Stored paths (or objects carrying one, see ``key``).
        opt: Listing options.
        key: Extracts the stored path from an item.

    Yields:
        Tuples of (item, normalized name).
    """
    emitted = 0
    for item in items:
        name = match_file_name(key(item), opt)
        if name is None:
            continue
        emitted += 1
        yield item, name
        if opt.limit and emitted >= opt.limit:
            return


async def filter_file_names_stream(
    items: AsyncIterator[T],
    opt: GetFilesOptions,
    key=lambda item: item,
) -> AsyncIterator[tuple[T, str]]:
    """Async counterpart of filter_file_names(), stops pulling at the limit."""
    emitted = 0
    async for item in items:
        name = match_file_name(key(item), opt)
        if name is None:
            continue
        emitted += 1
        yield item, name
        if opt.limit and emitted >= opt.limit:
            return


def intermediate_file_name(depth: int, index: int) -> str:
    """Name of the intermediate object composed from chunk ``index`` at ``depth``."""
    return f"{INTERMEDIATE_PREFIX}{depth}_{index}"


def is_intermediate_file_name(path: str) -> bool:
    """Check if a path has the exact shape of an intermediate (``temp_<depth>_<index>``)."""
    return INTERMEDIATE_PATTERN.fullmatch(path) is not None


def join_path(*parts: str) -> str:
    """Join path segments with ``/`` (no escaping)."""
    return "/".join(parts)
