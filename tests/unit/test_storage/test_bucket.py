"""Tests for common_storage.bucket module.

Covers:
    - Delegation with the bound bucket name
    - String/JSON decoding and require_* helpers
    - Bulk getters (absent files dropped, order kept)
    - Listing shortcuts
"""

import json
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from common_storage.bucket import StorageBucket
from common_storage.exceptions import RequiredFileError
from common_storage.models import FileEntry, GetFilesOptions
from common_storage.utils.concurrency import collect


def _make_mock_storage():
    storage = AsyncMock()
    storage.settings.SAVE_CONCURRENCY = 4
    return storage


@pytest.mark.fast
class TestDelegation:
    @pytest.mark.asyncio
    async def test_bucket_name_is_injected(self):
        storage = _make_mock_storage()
        bucket = StorageBucket(storage, "b1")

        await bucket.save_file("a.txt", b"1")
        storage.save_file.assert_awaited_once_with("b1", "a.txt", b"1")

        await bucket.delete_path("logs/")
        storage.delete_path.assert_awaited_once_with("b1", "logs/")

        await bucket.copy_file("a.txt", "b.txt")
        storage.copy_file.assert_awaited_once_with("b1", "a.txt", "b.txt", None)

        await bucket.move_path("from/", "to/", to_bucket="b2")
        storage.move_path.assert_awaited_once_with("b1", "from/", "to/", "b2")

        await bucket.combine_files(["p/1", "p/2"], "out")
        storage.combine_files.assert_awaited_once_with("b1", ["p/1", "p/2"], "out", None)

    @pytest.mark.asyncio
    async def test_ping_uses_bound_bucket(self):
        storage = _make_mock_storage()
        await StorageBucket(storage, "b1").ping()
        storage.ping.assert_awaited_once_with("b1")

    @pytest.mark.asyncio
    async def test_get_file_names_builds_options(self):
        storage = _make_mock_storage()
        storage.get_file_names.return_value = ["x"]
        bucket = StorageBucket(storage, "b1")

        assert await bucket.get_file_names("test/", full_paths=False, limit=5) == ["x"]
        storage.get_file_names.assert_awaited_once_with(
            "b1", GetFilesOptions(prefix="test/", full_paths=False, limit=5)
        )

    @pytest.mark.asyncio
    async def test_signed_url(self, bucket):
        await bucket.save_file("a.txt", b"1")
        url = await bucket.get_signed_url("a.txt", timedelta(minutes=5))
        assert url.startswith("https://testurl.com/TEST_BUCKET/a.txt?")


@pytest.mark.fast
class TestDecoding:
    @pytest.mark.asyncio
    async def test_get_file_as_string(self, bucket):
        await bucket.save_file("a.txt", "héllo".encode("utf-8"))
        assert await bucket.get_file_as_string("a.txt") == "héllo"
        assert await bucket.get_file_as_string("missing") is None

    @pytest.mark.asyncio
    async def test_empty_file_is_empty_string(self, bucket):
        await bucket.save_file("empty.txt", b"")
        assert await bucket.get_file_as_string("empty.txt") == ""
        assert await bucket.require_file_as_string("empty.txt") == ""

    @pytest.mark.asyncio
    async def test_get_file_as_json(self, bucket):
        await bucket.save_file("a.json", b'{"a": 1}')
        assert await bucket.get_file_as_json("a.json") == {"a": 1}
        assert await bucket.get_file_as_json("missing") is None

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, bucket):
        await bucket.save_file("bad.json", b"{not json")
        with pytest.raises(json.JSONDecodeError):
            await bucket.get_file_as_json("bad.json")

    @pytest.mark.asyncio
    async def test_require_file(self, bucket):
        await bucket.save_file("a.json", b"[1, 2]")
        assert await bucket.require_file("a.json") == b"[1, 2]"
        assert await bucket.require_file_as_json("a.json") == [1, 2]

    @pytest.mark.asyncio
    async def test_require_missing_raises(self, bucket):
        for require in [bucket.require_file, bucket.require_file_as_string, bucket.require_file_as_json]:
            with pytest.raises(RequiredFileError) as exc_info:
                await require("missing.json")
            assert exc_info.value.code == "FILE_REQUIRED"
            assert exc_info.value.file_path == "missing.json"
            assert "TEST_BUCKET/missing.json" in str(exc_info.value)


@pytest.mark.fast
class TestBulk:
    @pytest.mark.asyncio
    async def test_get_file_contents_drops_missing(self, bucket):
        await bucket.save_files([
            FileEntry(file_path="a", content=b"1"),
            FileEntry(file_path="b", content=b""),
            FileEntry(file_path="c", content=b"3"),
        ])
        contents = await bucket.get_file_contents(["c", "missing", "a", "b"])
        assert contents == [b"3", b"1", b""]

    @pytest.mark.asyncio
    async def test_get_file_contents_as_json(self, bucket):
        await bucket.save_file("a.json", b'{"n": 1}')
        await bucket.save_file("b.json", b"0")
        assert await bucket.get_file_contents_as_json(["a.json", "x.json", "b.json"]) == [{"n": 1}, 0]

    @pytest.mark.asyncio
    async def test_falsy_json_values_are_kept(self, bucket):
        """Only absent files are dropped; falsy decoded values are content."""
        for path, raw in [("zero", b"0"), ("empty_str", b'""'), ("false", b"false"), ("empty_list", b"[]")]:
            await bucket.save_file(path, raw)
        paths = ["zero", "missing", "empty_str", "false", "empty_list"]

        assert await bucket.get_file_contents_as_json(paths) == [0, "", False, []]
        entries = await bucket.get_file_entries_as_json(paths)
        assert [e.file_path for e in entries] == ["zero", "empty_str", "false", "empty_list"]

    @pytest.mark.asyncio
    async def test_get_file_entries(self, bucket):
        await bucket.save_file("a", b"1")
        entries = await bucket.get_file_entries(["missing", "a"])
        assert entries == [FileEntry(file_path="a", content=b"1")]

    @pytest.mark.asyncio
    async def test_get_file_entries_as_json(self, bucket):
        await bucket.save_file("a.json", b'{"n": 1}')
        entries = await bucket.get_file_entries_as_json(["a.json", "missing"])
        assert [(e.file_path, e.content) for e in entries] == [("a.json", {"n": 1})]


@pytest.mark.fast
class TestListing:
    @pytest.mark.asyncio
    async def test_listing_and_streams(self, bucket):
        await bucket.save_file("test/a.json", b"a")
        await bucket.save_file("test/sub/b.json", b"b")
        await bucket.save_file("other.json", b"o")

        assert await bucket.get_file_names("test/") == ["test/a.json", "test/sub/b.json"]
        assert await collect(bucket.get_file_names_stream("test/", full_paths=False)) == ["a.json", "b.json"]
        entries = await collect(bucket.get_files_stream("test/", limit=1))
        assert [(e.file_path, e.content) for e in entries] == [("test/a.json", b"a")]

    @pytest.mark.asyncio
    async def test_streams_and_delete(self, bucket):
        async with bucket.get_file_write_stream("s.txt") as stream:
            await stream.write(b"abc")
        assert b"".join(await collect(bucket.get_file_read_stream("s.txt"))) == b"abc"

        await bucket.delete_files(["s.txt"])
        assert await bucket.file_exists("s.txt") is False
