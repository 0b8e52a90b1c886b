"""Classification data models."""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """Fixed content-type grouping; ``OTHERS`` is the universal fallback."""

    IMAGES = "images"
    VIDEOS = "videos"
    AUDIOS = "audios"
    CODES = "codes"
    DOCUMENTS = "documents"
    ARCHIVES = "archives"
    FONTS = "fonts"
    OTHERS = "others"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Return the category named ``value`` (case-insensitive).

        Raises:
            ValueError: If ``value`` does not name a category.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Invalid category '{value}'; expected one of: {valid}") from None

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]


__all__ = ["Category"]
