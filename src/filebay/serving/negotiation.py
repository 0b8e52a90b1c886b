"""Response header negotiation for serving stored files."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import quote

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: Mapping[str, str] = MappingProxyType(
    {
        ".json": "application/json",
        ".pdf": "application/pdf",
        ".zip": "application/zip",
        ".gz": "application/gzip",
        ".tar": "application/x-tar",
        ".7z": "application/x-7z-compressed",
        ".txt": "text/plain; charset=utf-8",
        ".md": "text/markdown; charset=utf-8",
        ".csv": "text/csv; charset=utf-8",
        ".html": "text/html; charset=utf-8",
        ".css": "text/css; charset=utf-8",
        ".js": "application/javascript",
        ".xml": "application/xml",
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".bmp": "image/bmp",
        ".svg": "image/svg+xml",
        ".webp": "image/webp",
        ".ico": "image/x-icon",
        ".avif": "image/avif",
        ".mp4": "video/mp4",
        ".webm": "video/webm",
        ".mov": "video/quicktime",
        ".avi": "video/x-msvideo",
        ".mkv": "video/x-matroska",
        ".mp3": "audio/mpeg",
        ".wav": "audio/wav",
        ".ogg": "audio/ogg",
        ".m4a": "audio/mp4",
        ".flac": "audio/flac",
        ".aac": "audio/aac",
        ".woff": "font/woff",
        ".woff2": "font/woff2",
        ".ttf": "font/ttf",
        ".otf": "font/otf",
        ".doc": "application/msword",
        ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ".xls": "application/vnd.ms-excel",
        ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        ".ppt": "application/vnd.ms-powerpoint",
        ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    }
)

# Served inline unless a download is requested. SVG is always an attachment.
PREVIEWABLE_EXTENSIONS = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".webp",
        ".ico",
        ".avif",
        ".pdf",
        ".mp3",
        ".wav",
        ".ogg",
        ".m4a",
        ".flac",
        ".aac",
        ".mp4",
        ".webm",
        ".mov",
    }
)


@dataclass(frozen=True)
class NegotiatedHeaders:
    """Headers computed for one served file."""

    content_type: str
    disposition: str
    cache_control: str

    def as_dict(self) -> dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Disposition": self.disposition,
            "Cache-Control": self.cache_control,
        }


class ContentNegotiator:
    """Compute content type, disposition, and cache policy for a stored file.

    Committed files are immutable (re-uploads get a new name), so every response can be
    cached publicly for a long time.
    """

    def __init__(self, cache_max_age_seconds: int = 31_536_000) -> None:
        self.cache_control = f"public, max-age={cache_max_age_seconds}, immutable"

    def headers(
        self,
        extension: str,
        explicit_download_requested: bool,
        filename: Optional[str] = None,
    ) -> NegotiatedHeaders:
        """Return negotiated headers.

        Args:
            extension: File extension including the leading dot (any case).
            explicit_download_requested: Whether the caller asked for a download.
            filename: Optional filename to advertise in ``Content-Disposition``.

        Returns:
            NegotiatedHeaders: Content type, disposition, and cache policy.
        """
        key = extension.lower()
        if key and not key.startswith("."):
            key = f".{key}"
        content_type = CONTENT_TYPES.get(key, DEFAULT_CONTENT_TYPE)
        inline = not explicit_download_requested and key in PREVIEWABLE_EXTENSIONS
        disposition = "inline" if inline else "attachment"
        if filename:
            disposition = f"{disposition}; {_filename_parameters(filename)}"
        return NegotiatedHeaders(
            content_type=content_type,
            disposition=disposition,
            cache_control=self.cache_control,
        )


def _filename_parameters(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    fallback = fallback.replace("?", "_")
    return f"filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "PREVIEWABLE_EXTENSIONS",
    "ContentNegotiator",
    "NegotiatedHeaders",
]
