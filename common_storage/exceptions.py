"""Exception hierarchy for storage operations.

Absent objects are normally reported as ``None`` by single-get operations;
the exceptions here cover the cases where absence or misuse must abort
the caller.

Examples:
    >>> from common_storage.exceptions import RequiredFileError
    >>> err = RequiredFileError("bucket", "a/b.json")
    >>> err.code
    'FILE_REQUIRED'
"""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for storage errors.

    Attributes:
        message: Error message
        code: Machine-readable error code
        retryable: Whether retrying the same call may succeed
    """

    code: str = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        retryable: bool = False,
    ) -> None:
        """Initialize storage error.

        Args:
            message: Error message.
            code: Error code (defaults to the class code).
            retryable: Whether the error is retryable.
        """
        super().__init__(message)
        if code:
            self.code = code
        self.retryable = retryable

    def __str__(self) -> str:
        return f"[{self.code}] {self.args[0]}"


class ObjectNotFoundError(StorageError):
    """A source object was missing where one is required by the backend."""

    code = "NOT_FOUND"

    def __init__(self, bucket_name: str, file_path: str) -> None:
        super().__init__(f"Object not found: {bucket_name}/{file_path}")
        self.bucket_name = bucket_name
        self.file_path = file_path


class RequiredFileError(StorageError):
    """Raised by ``require_*`` helpers when the file is absent."""

    code = "FILE_REQUIRED"

    def __init__(self, bucket_name: str, file_path: str) -> None:
        super().__init__(f"File required, but not found: {bucket_name}/{file_path}")
        self.bucket_name = bucket_name
        self.file_path = file_path


class RecursionLimitExceededError(StorageError):
    """Composition needed more recursion levels than allowed (never retried)."""

    code = "RECURSION_LIMIT_EXCEEDED"

    def __init__(self, depth: int, max_depth: int) -> None:
        super().__init__(
            f"combine_files reached max recursion depth of {max_depth} (depth={depth})",
            retryable=False,
        )
        self.depth = depth
        self.max_depth = max_depth


class UnsupportedOperationError(StorageError):
    """The adapter cannot express this operation."""

    code = "UNSUPPORTED_OPERATION"
