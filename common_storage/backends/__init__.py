"""Storage backends implementing the storage contract."""

from common_storage.backends.base import CommonStorage, WriteStream
from common_storage.backends.cloud import CloudStorage
from common_storage.backends.memory import InMemoryStorage

__all__ = ["CommonStorage", "WriteStream", "CloudStorage", "InMemoryStorage"]
