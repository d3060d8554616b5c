"""Tests for common_storage.exceptions module."""

import pytest

from common_storage.exceptions import (
    ObjectNotFoundError,
    RecursionLimitExceededError,
    RequiredFileError,
    StorageError,
    UnsupportedOperationError,
)


@pytest.mark.fast
class TestStorageError:
    def test_defaults(self):
        err = StorageError("something failed")
        assert err.code == "STORAGE_ERROR"
        assert err.retryable is False
        assert str(err) == "[STORAGE_ERROR] something failed"

    def test_custom_code(self):
        err = StorageError("throttled", code="RATE_LIMITED", retryable=True)
        assert err.code == "RATE_LIMITED"
        assert err.retryable is True
        # Class default is untouched
        assert StorageError.code == "STORAGE_ERROR"

    @pytest.mark.parametrize("exc", [
        ObjectNotFoundError("b", "p"),
        RequiredFileError("b", "p"),
        RecursionLimitExceededError(11, 10),
        UnsupportedOperationError("nope"),
    ])
    def test_hierarchy(self, exc):
        assert isinstance(exc, StorageError)


@pytest.mark.fast
class TestSubclasses:
    def test_object_not_found(self):
        err = ObjectNotFoundError("bucket", "a/b.json")
        assert err.code == "NOT_FOUND"
        assert "bucket/a/b.json" in str(err)

    def test_required_file(self):
        err = RequiredFileError("bucket", "a/b.json")
        assert err.code == "FILE_REQUIRED"
        assert (err.bucket_name, err.file_path) == ("bucket", "a/b.json")

    def test_recursion_limit_is_not_retryable(self):
        err = RecursionLimitExceededError(11, 10)
        assert err.retryable is False
        assert err.depth == 11
        assert "max recursion depth of 10" in str(err)
