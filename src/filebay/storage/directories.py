"""Create, list, inspect, and delete entries of the storage tree."""

from __future__ import annotations

import errno
import logging
import os
import stat as stat_module
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from filebay.classification import Category, CategoryClassifier
from filebay.errors import (
    ConflictError,
    InternalIOError,
    NonEmptyDirectoryError,
    NotFoundError,
    ValidationError,
)
from filebay.organization.models import DirectoryEntry, StoredFile
from filebay.organization.resolver import MAX_NAMESPACE_DEPTH, validate_segment

from .paths import confine, ensure_directory

LOGGER = logging.getLogger(__name__)


class DirectoryManager:
    """Filesystem operations on the namespace/category tree under ``root``.

    The staging directory and hidden entries are internal machinery: they cannot be
    created, deleted, or listed through this manager.
    """

    def __init__(
        self,
        root: Path,
        *,
        temp_dirname: str = "temp",
        classifier: CategoryClassifier | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.root = root
        self.temp_dirname = temp_dirname
        self.classifier = classifier or CategoryClassifier()
        self._logger = logger or LOGGER

    @property
    def reserved(self) -> frozenset[str]:
        return frozenset({self.temp_dirname})

    def ensure_directory(self, path: Path) -> Path:
        """Idempotently create ``path``; pre-existing directories are not an error."""
        try:
            return ensure_directory(path)
        except OSError as exc:
            self._logger.error("Could not create directory %s: %s", path, exc)
            raise InternalIOError("Failed to create directory.") from exc

    def create_directory(self, parent_namespace: Optional[str], name: str) -> str:
        """Create ``name`` directly under the root or under ``parent_namespace``.

        Args:
            parent_namespace: Existing namespace to nest the directory under.
            name: Name of the new directory.

        Returns:
            str: Root-relative path of the created directory.

        Raises:
            ValidationError: If a name is unsafe or reserved, or the result would be
                nested deeper than a namespace may be.
            NotFoundError: If ``parent_namespace`` is given but missing.
            ConflictError: If the directory already exists.
        """
        validate_segment(name, reserved=self.reserved, kind="directory name")
        segments = [name]
        if parent_namespace:
            parent_segments = self._split(parent_namespace, kind="parent namespace")
            if len(parent_segments) + 1 > MAX_NAMESPACE_DEPTH:
                raise ValidationError(
                    f"Directory '{name}' cannot be nested under '{parent_namespace}'; "
                    "namespaces are at most 'parent/name'."
                )
            parent = confine(self.root, *parent_segments)
            if not parent.is_dir():
                raise NotFoundError(f"Parent namespace '{parent_namespace}' does not exist.")
            segments = [*parent_segments, name]

        target = confine(self.root, *segments)
        relative = "/".join(segments)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.mkdir()
        except FileExistsError as exc:
            raise ConflictError(f"Directory '{relative}' already exists.") from exc
        except OSError as exc:
            self._logger.error("Could not create directory %s: %s", target, exc)
            raise InternalIOError("Failed to create directory.") from exc

        self._logger.info("Created directory %s", relative)
        return relative

    def delete_entry(self, path: str) -> DirectoryEntry:
        """Delete a file, or a directory that is empty.

        Args:
            path: Root-relative path of the entry.

        Returns:
            DirectoryEntry: Description of the removed entry.

        Raises:
            NotFoundError: If nothing exists at ``path``.
            NonEmptyDirectoryError: If ``path`` is a directory with children.
        """
        segments = self._split(path, kind="path")
        target = confine(self.root, *segments)
        relative = "/".join(segments)
        if not target.exists():
            raise NotFoundError(f"'{relative}' does not exist.")

        try:
            entry = self._describe(target)
        except FileNotFoundError as exc:
            raise NotFoundError(f"'{relative}' does not exist.") from exc
        try:
            if entry.is_directory:
                item_count = _count_children(target)
                if item_count:
                    raise NonEmptyDirectoryError(relative, item_count)
                target.rmdir()
            else:
                target.unlink()
        except FileNotFoundError as exc:
            raise NotFoundError(f"'{relative}' does not exist.") from exc
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise NonEmptyDirectoryError(relative, _count_children(target)) from exc
            self._logger.error("Could not delete %s: %s", target, exc)
            raise InternalIOError("Failed to delete entry.") from exc

        self._logger.info("Deleted %s %s", "directory" if entry.is_directory else "file", relative)
        return entry

    def list_entries(self, directory: Optional[str] = None) -> list[DirectoryEntry]:
        """List the children of ``directory`` (the storage root when omitted).

        Raises:
            NotFoundError: If the directory does not exist.
        """
        if directory:
            segments = self._split(directory, kind="directory")
            target = confine(self.root, *segments)
        else:
            target = self.root
        if not target.is_dir():
            raise NotFoundError(f"Directory '{directory or '/'}' does not exist.")

        hidden = frozenset() if directory else self.reserved
        try:
            children = sorted(target.iterdir(), key=lambda child: child.name)
        except FileNotFoundError as exc:
            raise NotFoundError(f"Directory '{directory or '/'}' does not exist.") from exc
        except OSError as exc:
            self._logger.error("Could not list %s: %s", target, exc)
            raise InternalIOError("Failed to list directory.") from exc

        entries: list[DirectoryEntry] = []
        for child in children:
            if child.name in hidden or child.name.startswith("."):
                continue
            try:
                entries.append(self._describe(child))
            except FileNotFoundError:
                # Removed by a concurrent request after the directory was read.
                continue
        return entries

    def file_info(self, directory: str, name: str) -> StoredFile:
        """Return metadata for one stored file.

        Raises:
            ValidationError: If either argument is missing.
            NotFoundError: If the file does not exist.
        """
        if not directory or not name:
            raise ValidationError("Both 'dir' and 'name' are required.")
        segments = self._split(directory, kind="directory")
        validate_segment(name, kind="file name")
        target = confine(self.root, *segments, name)
        if not target.is_file():
            raise NotFoundError(f"File '{'/'.join(segments)}/{name}' does not exist.")

        try:
            entry = self._describe(target)
        except FileNotFoundError as exc:
            raise NotFoundError(f"File '{'/'.join(segments)}/{name}' does not exist.") from exc
        top = segments[0]
        if top in Category.names():
            category = Category(top)
            namespace = None
        else:
            category = self.classifier.classify(None, name)
            namespace = "/".join(segments)
        return StoredFile(
            directory="/".join(segments),
            name=name,
            size=entry.size,
            modified_at=entry.modified_at,
            created_at=entry.created_at,
            category=category,
            namespace=namespace,
        )

    def resolve_file(self, relative: str) -> Path:
        """Return the absolute path of a stored file addressed by ``dir/.../name``.

        Raises:
            NotFoundError: If the file does not exist or addresses internal machinery.
        """
        try:
            segments = self._split(relative, kind="path")
        except ValidationError as exc:
            raise NotFoundError("File not found.") from exc
        if len(segments) < 2:
            raise NotFoundError("File not found.")
        target = confine(self.root, *segments)
        if not target.is_file():
            raise NotFoundError("File not found.")
        return target

    def _split(self, value: str, *, kind: str) -> list[str]:
        segments = [segment for segment in value.replace("\\", "/").split("/") if segment]
        if not segments:
            raise ValidationError(f"The {kind} must not be empty.")
        validate_segment(segments[0], reserved=self.reserved, kind=kind)
        for segment in segments[1:]:
            validate_segment(segment, kind=kind)
        return segments

    def _describe(self, path: Path) -> DirectoryEntry:
        """Stat ``path``; ``FileNotFoundError`` propagates so callers can treat it as absent."""
        try:
            stat = path.stat()
        except FileNotFoundError:
            raise
        except OSError as exc:
            raise InternalIOError("Failed to read entry metadata.") from exc
        is_directory = stat_module.S_ISDIR(stat.st_mode)
        created = getattr(stat, "st_birthtime", stat.st_ctime)
        return DirectoryEntry(
            name=path.name,
            is_directory=is_directory,
            size=0 if is_directory else stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            created_at=datetime.fromtimestamp(created, tz=timezone.utc),
        )


def _count_children(path: Path) -> int:
    with os.scandir(path) as entries:
        return sum(1 for _ in entries)


__all__ = ["DirectoryManager"]
