"""Storage tree management."""

from .paths import confine, ensure_directory
from .directories import DirectoryManager

__all__ = ["DirectoryManager", "confine", "ensure_directory"]
