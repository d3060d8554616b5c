"""Storage abstraction over blob-storage backends.

Provides a uniform bucket/path API over Google Cloud Storage and an
in-memory test double, batched composition of many objects into one,
and a key-value database adapter on top of a bucket.

Examples:
    >>> from common_storage import InMemoryStorage, StorageBucket
    >>> bucket = StorageBucket(InMemoryStorage(), "my-bucket")
    >>> await bucket.save_file("a.txt", b"hello")
"""

__version__ = "1.0.0"

from common_storage.backends import CloudStorage, CommonStorage, InMemoryStorage, WriteStream
from common_storage.bucket import StorageBucket
from common_storage.compose import Composer
from common_storage.config import Settings, get_settings
from common_storage.exceptions import (
    ObjectNotFoundError,
    RecursionLimitExceededError,
    RequiredFileError,
    StorageError,
    UnsupportedOperationError,
)
from common_storage.factory import create_storage
from common_storage.key_value import StorageKeyValueDB
from common_storage.models import FileEntry, GetFilesOptions, JsonFileEntry

__all__ = [
    "CloudStorage",
    "CommonStorage",
    "Composer",
    "FileEntry",
    "GetFilesOptions",
    "InMemoryStorage",
    "JsonFileEntry",
    "ObjectNotFoundError",
    "RecursionLimitExceededError",
    "RequiredFileError",
    "Settings",
    "StorageBucket",
    "StorageError",
    "StorageKeyValueDB",
    "UnsupportedOperationError",
    "WriteStream",
    "create_storage",
    "get_settings",
]
