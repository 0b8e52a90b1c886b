"""Placement of uploads: target resolution, collision handling, and commit."""

from .collisions import CollisionResolver, split_name
from .finalizer import Finalizer
from .models import DirectoryEntry, StoredFile, UploadResult, UploadState
from .resolver import PathResolver, ResolvedTarget, validate_segment

__all__ = [
    "CollisionResolver",
    "DirectoryEntry",
    "Finalizer",
    "PathResolver",
    "ResolvedTarget",
    "StoredFile",
    "UploadResult",
    "UploadState",
    "split_name",
    "validate_segment",
]
