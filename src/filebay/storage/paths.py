"""Filesystem path helpers shared by the storage components."""

from __future__ import annotations

from pathlib import Path

from filebay.errors import ValidationError


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and missing ancestors; an existing directory is not an error.

    Concurrent callers racing on the same path all succeed.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def confine(root: Path, *segments: str) -> Path:
    """Join ``segments`` onto ``root`` and reject results that escape it.

    Raises:
        ValidationError: If the joined path resolves outside ``root``.
    """
    base = root.resolve()
    candidate = base.joinpath(*segments).resolve()
    if candidate != base and base not in candidate.parents:
        raise ValidationError("Path escapes the storage root.")
    return candidate


__all__ = ["confine", "ensure_directory"]
