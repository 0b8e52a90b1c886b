"""Data models for stored files, directory listings, and upload outcomes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from filebay.classification import Category


class ApiModel(BaseModel):
    """Base model rendered with camelCase keys in HTTP responses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UploadState(str, Enum):
    """Lifecycle of a single upload."""

    RECEIVED = "received"
    STAGED = "staged"
    RESOLVING = "resolving"
    COMMITTED = "committed"
    FAILED = "failed"


class DirectoryEntry(ApiModel):
    """One child of a listed directory.

    Attributes:
        name: Entry name.
        is_directory: Whether the entry is a directory.
        size: Size in bytes (0 for directories).
        modified_at: Last modification time.
        created_at: Creation time where the platform records it, else inode change time.
    """

    name: str
    is_directory: bool
    size: int
    modified_at: datetime
    created_at: datetime


class StoredFile(ApiModel):
    """A committed file identified by root-relative directory and filename."""

    directory: str
    name: str
    size: int
    modified_at: datetime
    created_at: datetime
    category: Category
    namespace: Optional[str] = None

    @property
    def relative_path(self) -> str:
        return f"{self.directory}/{self.name}"


class UploadResult(ApiModel):
    """Response body for a successful upload."""

    message: str = "File uploaded successfully"
    url: str
    filename: str
    original_name: str
    mimetype: Optional[str] = None
    category: Category
    namespace: Optional[str] = None
    directory: str
    size: int


__all__ = ["ApiModel", "DirectoryEntry", "StoredFile", "UploadResult", "UploadState"]
