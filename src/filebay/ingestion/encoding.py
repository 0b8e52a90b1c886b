"""Filename repair for names mangled by encoding-unaware transports.

Multipart parsers commonly decode the filename header as a single-byte code page
(Latin-1) even though browsers send UTF-8. The result is mojibake such as
``æ\\x8a¥å\\x91\\x8a.pdf`` for ``报告.pdf``. Re-encoding with the same code page recovers
the original bytes, which are then decoded as UTF-8.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import PurePath

DEFAULT_SOURCE_ENCODING = "latin-1"

_FORBIDDEN = re.compile(r'[\x00-\x1f\x7f<>:"|?*]')


class EncodingNormalizer:
    """Best-effort repair of mis-decoded filenames; never raises."""

    def __init__(self, source_encoding: str = DEFAULT_SOURCE_ENCODING) -> None:
        self.source_encoding = source_encoding

    def fix(self, name: str) -> str:
        """Return ``name`` with mis-decoded UTF-8 restored, or unchanged.

        Args:
            name: Declared filename as received from the transport.

        Returns:
            str: Repaired filename, or the input when repair is not possible.
        """
        if not name or name.isascii():
            return name
        try:
            raw = name.encode(self.source_encoding)
            return raw.decode("utf-8")
        except (UnicodeError, LookupError):
            return name


def sanitize_filename(name: str | None, *, fallback: str = "unnamed") -> str:
    """Reduce a declared filename to a safe single path segment.

    Directory components are dropped, control and reserved characters are removed,
    and names that would resolve to ``.``/``..`` or to nothing fall back to ``fallback``
    while keeping any extension.
    """
    if not name:
        return fallback
    candidate = PurePath(name.replace("\\", "/")).name
    candidate = unicodedata.normalize("NFC", candidate)
    candidate = _FORBIDDEN.sub("", candidate).strip().rstrip(". ")
    if not candidate:
        return fallback
    if candidate.startswith("."):
        return f"{fallback}{candidate}"
    return candidate


__all__ = ["DEFAULT_SOURCE_ENCODING", "EncodingNormalizer", "sanitize_filename"]
