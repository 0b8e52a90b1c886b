"""Static MIME type and extension tables used for classification.

The tables are keyed by category so each one can be maintained independently. They are
turned into read-only reverse indexes once, when a :class:`ClassificationTables` is
built, and never written afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from filebay.config.exceptions import ConfigError

from .models import Category

MIME_TYPES_BY_CATEGORY: Mapping[Category, tuple[str, ...]] = MappingProxyType(
    {
        Category.IMAGES: (
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/bmp",
            "image/svg+xml",
            "image/webp",
            "image/tiff",
            "image/x-icon",
            "image/avif",
        ),
        Category.VIDEOS: (
            "video/mp4",
            "video/mpeg",
            "video/quicktime",
            "video/x-msvideo",
            "video/x-matroska",
            "video/webm",
            "video/x-flv",
        ),
        Category.AUDIOS: (
            "audio/mpeg",
            "audio/wav",
            "audio/x-wav",
            "audio/ogg",
            "audio/aac",
            "audio/flac",
            "audio/webm",
            "audio/mp4",
            "audio/x-m4a",
        ),
        Category.CODES: (
            "text/javascript",
            "application/javascript",
            "text/python",
            "application/python",
            "text/x-python",
            "text/php",
            "application/php",
            "text/java",
            "application/java",
            "text/c",
            "text/c++",
            "application/c",
            "application/c++",
            "text/ruby",
            "application/ruby",
            "text/go",
            "application/go",
            "text/typescript",
            "application/typescript",
            "text/html",
            "text/css",
            "application/json",
            "application/xml",
            "text/x-shellscript",
        ),
        Category.DOCUMENTS: (
            "text/plain",
            "text/markdown",
            "text/csv",
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.ms-powerpoint",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/rtf",
            "application/vnd.oasis.opendocument.text",
            "application/epub+zip",
        ),
        Category.ARCHIVES: (
            "application/zip",
            "application/x-zip-compressed",
            "application/x-tar",
            "application/gzip",
            "application/x-gzip",
            "application/x-bzip2",
            "application/x-7z-compressed",
            "application/x-rar-compressed",
            "application/vnd.rar",
            "application/x-xz",
        ),
        Category.FONTS: (
            "font/ttf",
            "font/otf",
            "font/woff",
            "font/woff2",
            "application/font-woff",
            "application/x-font-ttf",
            "application/vnd.ms-fontobject",
        ),
    }
)

EXTENSIONS_BY_CATEGORY: Mapping[Category, tuple[str, ...]] = MappingProxyType(
    {
        Category.IMAGES: (
            ".jpg",
            ".jpeg",
            ".png",
            ".gif",
            ".bmp",
            ".svg",
            ".webp",
            ".tif",
            ".tiff",
            ".ico",
            ".avif",
        ),
        Category.VIDEOS: (".mp4", ".mpeg", ".mpg", ".mov", ".avi", ".mkv", ".webm", ".flv"),
        Category.AUDIOS: (".mp3", ".wav", ".ogg", ".oga", ".aac", ".flac", ".m4a", ".weba"),
        Category.CODES: (
            ".js",
            ".mjs",
            ".py",
            ".php",
            ".java",
            ".c",
            ".h",
            ".cpp",
            ".hpp",
            ".rb",
            ".go",
            ".ts",
            ".html",
            ".css",
            ".json",
            ".xml",
            ".sh",
        ),
        Category.DOCUMENTS: (
            ".txt",
            ".md",
            ".csv",
            ".pdf",
            ".doc",
            ".docx",
            ".ppt",
            ".pptx",
            ".xls",
            ".xlsx",
            ".rtf",
            ".odt",
            ".epub",
        ),
        Category.ARCHIVES: (".zip", ".tar", ".gz", ".tgz", ".bz2", ".7z", ".rar", ".xz"),
        Category.FONTS: (".ttf", ".otf", ".woff", ".woff2", ".eot"),
    }
)


@dataclass(frozen=True)
class DuplicateMapping:
    """A key claimed by more than one category.

    Attributes:
        table: Which table the key belongs to (``mime`` or ``extension``).
        key: The MIME type or extension.
        categories: Every category that lists the key, in table order.
    """

    table: str
    key: str
    categories: tuple[Category, ...]

    def describe(self) -> str:
        names = ", ".join(category.value for category in self.categories)
        return f"{self.table} '{self.key}' is mapped to multiple categories: {names}"


@dataclass(frozen=True)
class ClassificationTables:
    """Read-only reverse indexes from MIME type and extension to category."""

    mime_index: Mapping[str, Category] = field(default_factory=lambda: MappingProxyType({}))
    extension_index: Mapping[str, Category] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        *,
        extra_mime_types: Mapping[str, Iterable[str]] | None = None,
        extra_extensions: Mapping[str, Iterable[str]] | None = None,
    ) -> "ClassificationTables":
        """Merge the built-in tables with configured extras and index them.

        Args:
            extra_mime_types: Category name to additional MIME types.
            extra_extensions: Category name to additional extensions.

        Returns:
            ClassificationTables: Validated, immutable lookup tables.

        Raises:
            ConfigError: If a category name is unknown or a key maps to several categories.
        """
        mime_table = _merge(MIME_TYPES_BY_CATEGORY, extra_mime_types, normalize=normalize_mime)
        extension_table = _merge(
            EXTENSIONS_BY_CATEGORY, extra_extensions, normalize=normalize_extension
        )
        duplicates = find_duplicates(mime_table, table="mime") + find_duplicates(
            extension_table, table="extension"
        )
        if duplicates:
            lines = "; ".join(duplicate.describe() for duplicate in duplicates)
            raise ConfigError(f"Duplicate classification mappings: {lines}")

        return cls(
            mime_index=MappingProxyType(_invert(mime_table)),
            extension_index=MappingProxyType(_invert(extension_table)),
        )


def normalize_mime(value: str) -> str:
    """Lower-case a MIME type and drop parameters such as ``charset``."""
    return value.split(";", 1)[0].strip().lower()


def normalize_extension(value: str) -> str:
    """Lower-case an extension and ensure it carries a leading dot."""
    value = value.strip().lower()
    if value and not value.startswith("."):
        value = f".{value}"
    return value


def find_duplicates(
    mapping: Mapping[Category, Iterable[str]], *, table: str = ""
) -> list[DuplicateMapping]:
    """Return every key that appears under more than one category."""
    owners: dict[str, list[Category]] = {}
    for category, keys in mapping.items():
        for key in keys:
            claimed = owners.setdefault(key, [])
            if category not in claimed:
                claimed.append(category)
    return [
        DuplicateMapping(table=table, key=key, categories=tuple(categories))
        for key, categories in owners.items()
        if len(categories) > 1
    ]


def _merge(
    base: Mapping[Category, Iterable[str]],
    extras: Mapping[str, Iterable[str]] | None,
    *,
    normalize: Callable[[str], str],
) -> dict[Category, list[str]]:
    merged: dict[Category, list[str]] = {
        category: [normalize(key) for key in keys] for category, keys in base.items()
    }
    for name, keys in (extras or {}).items():
        try:
            category = Category.parse(name)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        bucket = merged.setdefault(category, [])
        for key in keys:
            normalized = normalize(key)
            if normalized and normalized not in bucket:
                bucket.append(normalized)
    return merged


def _invert(table: Mapping[Category, Iterable[str]]) -> dict[str, Category]:
    index: dict[str, Category] = {}
    for category, keys in table.items():
        for key in keys:
            index.setdefault(key, category)
    return index


__all__ = [
    "MIME_TYPES_BY_CATEGORY",
    "EXTENSIONS_BY_CATEGORY",
    "ClassificationTables",
    "DuplicateMapping",
    "find_duplicates",
    "normalize_extension",
    "normalize_mime",
]
