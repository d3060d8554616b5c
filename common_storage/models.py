"""Data models shared by storage backends and wrappers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class FileEntry(BaseModel):
    """A file path and its content, the unit of bulk transfer."""

    file_path: str
    content: bytes


class GetFilesOptions(BaseModel):
    """Listing options.

    Attributes:
        prefix: Only return paths starting with this string.
        full_paths: Return full paths (default) or just the part after the last ``/``.
        limit: Maximum number of results; 0 or None means unlimited.
    """

    prefix: str = ""
    full_paths: bool = True
    limit: int | None = Field(default=None, ge=0)

    @field_validator("limit")
    @classmethod
    def zero_means_unlimited(cls, v: int | None) -> int | None:
        return v or None


class SignedUrlParams(BaseModel):
    """Query parameters of a signed read URL."""

    expires: int
    signature: str


class JsonFileEntry(BaseModel):
    """A file path and its decoded JSON content."""

    file_path: str
    content: Any
