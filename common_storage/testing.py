"""Reusable contract checks for storage backends.

Run against any backend (the in-memory one in unit tests, a real bucket
in manual tests). The sequence is idempotent: it clears what it writes.

Examples:
    >>> await run_common_storage_test(InMemoryStorage(), "TEST_BUCKET")
"""

from __future__ import annotations

import json

from common_storage.backends.base import CommonStorage
from common_storage.models import FileEntry, GetFilesOptions
from common_storage.utils.concurrency import collect, p_map

TEST_FOLDER = "test/subdir"

TEST_ITEMS = [{"id": f"id_{n + 1}", "n": n, "even": n % 2 == 0} for n in range(10)]
TEST_ITEMS2 = [{"fileType": 2, **item} for item in TEST_ITEMS]
TEST_ITEMS3 = [{"fileType": 3, **item} for item in TEST_ITEMS]

TEST_FILES = [
    FileEntry(file_path=f"{TEST_FOLDER}/file_{i + 1}.json", content=json.dumps(items).encode("utf-8"))
    for i, items in enumerate([TEST_ITEMS, TEST_ITEMS2, TEST_ITEMS3])
]


async def run_common_storage_test(storage: CommonStorage, bucket_name: str) -> None:
    """Exercise ping, save, list, stream, get, exists and delete."""
    await storage.ping()

    # prepare: clear bucket
    await p_map([f.file_path for f in TEST_FILES], lambda p: storage.delete_path(bucket_name, p))

    assert await storage.get_file_names(bucket_name) == []
    assert await storage.get_file_names(bucket_name, GetFilesOptions(prefix=TEST_FOLDER)) == []
    assert await collect(storage.get_file_names_stream(bucket_name)) == []

    for f in TEST_FILES:
        assert await storage.file_exists(bucket_name, f.file_path) is False

    # Saved and listed in one go to check read-after-write consistency
    await p_map(TEST_FILES, lambda f: storage.save_file(bucket_name, f.file_path, f.content))
    expected_paths = sorted(f.file_path for f in TEST_FILES)

    file_names = await storage.get_file_names(bucket_name, GetFilesOptions(prefix=TEST_FOLDER))
    assert sorted(file_names) == expected_paths

    streamed = await collect(storage.get_file_names_stream(bucket_name, GetFilesOptions(prefix=TEST_FOLDER)))
    assert sorted(streamed) == expected_paths

    contents = {p: await storage.get_file(bucket_name, p) for p in file_names}
    assert contents == {f.file_path: f.content for f in TEST_FILES}

    for p in file_names:
        assert await storage.file_exists(bucket_name, p) is True

    # cleanup
    await storage.delete_path(bucket_name, "")
    assert await storage.get_file_names(bucket_name, GetFilesOptions(prefix=TEST_FOLDER)) == []
