"""Category classification for uploaded files.

Classification is priority-ordered: the declared MIME type is consulted first and the
filename extension only when the MIME type is unknown. The two tables are maintained
independently and can disagree for the same file; the MIME type wins in that case.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional

from .models import Category
from .tables import ClassificationTables, normalize_mime

LOGGER = logging.getLogger(__name__)


class CategoryClassifier:
    """Map a MIME type and filename to exactly one :class:`Category`."""

    def __init__(self, tables: ClassificationTables | None = None) -> None:
        self._tables = tables or default_tables()

    @property
    def tables(self) -> ClassificationTables:
        return self._tables

    def classify(self, mime_type: Optional[str], filename: Optional[str]) -> Category:
        """Return the category for the given MIME type and filename.

        Args:
            mime_type: Declared MIME type, possibly empty or carrying parameters.
            filename: Declared filename; only its extension is used.

        Returns:
            Category: Matched category, or ``Category.OTHERS`` when nothing matches.
        """
        if mime_type:
            category = self._tables.mime_index.get(normalize_mime(mime_type))
            if category is not None:
                return category

        extension = extension_of(filename)
        if extension:
            category = self._tables.extension_index.get(extension)
            if category is not None:
                return category

        LOGGER.debug("No category for mime=%r filename=%r; using others.", mime_type, filename)
        return Category.OTHERS


def extension_of(filename: Optional[str]) -> str:
    """Return the lower-cased extension of ``filename`` including the leading dot."""
    if not filename:
        return ""
    return PurePath(filename.replace("\\", "/")).suffix.lower()


_DEFAULT_TABLES = ClassificationTables.build()


def default_tables() -> ClassificationTables:
    """Return the built-in tables, validated once at import."""
    return _DEFAULT_TABLES


def classify(mime_type: Optional[str], filename: Optional[str]) -> Category:
    """Classify using the built-in tables."""
    return CategoryClassifier().classify(mime_type, filename)


__all__ = ["CategoryClassifier", "classify", "default_tables", "extension_of"]
