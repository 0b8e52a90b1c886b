"""Staging of incoming byte streams into the temporary subtree."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import BinaryIO, Optional

from filebay.errors import InternalIOError, SizeLimitExceeded
from filebay.organization.collisions import CollisionResolver
from filebay.storage.paths import ensure_directory

from .encoding import sanitize_filename

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StagedFile:
    """A completely written staging artifact.

    Attributes:
        path: Location inside the staging directory.
        size: Number of bytes written.
        declared_name: Filename declared by the client, before repair.
    """

    path: Path
    size: int
    declared_name: str


class StagingUploader:
    """Write upload streams to the staging directory before they are committed.

    Artifacts are created exclusively (``open(..., "xb")``) under a sanitized version of
    the declared name, disambiguated like final names when taken. A caller only ever
    receives a :class:`StagedFile` after every byte has been written and flushed; on any
    failure the partial artifact is removed before the error propagates.
    """

    def __init__(
        self,
        temp_dir: Path,
        collisions: CollisionResolver | None = None,
        *,
        max_bytes: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        fsync: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.temp_dir = temp_dir
        self.collisions = collisions or CollisionResolver()
        self.max_bytes = max_bytes
        self.chunk_size = chunk_size
        self.fsync = fsync
        self._logger = logger or LOGGER

    def stage(
        self,
        stream: BinaryIO,
        declared_name: str,
        *,
        max_bytes: Optional[int] = None,
    ) -> StagedFile:
        """Copy ``stream`` into a new staging artifact.

        Args:
            stream: Readable binary stream positioned at the start of the upload.
            declared_name: Filename declared by the client.
            max_bytes: Per-call size limit overriding the uploader default.

        Returns:
            StagedFile: The fully written artifact.

        Raises:
            SizeLimitExceeded: If the stream grows beyond the limit.
            InternalIOError: If the artifact cannot be written.
        """
        limit = max_bytes if max_bytes is not None else self.max_bytes
        try:
            ensure_directory(self.temp_dir)
            path, handle = self._open_exclusive(sanitize_filename(declared_name))
        except OSError as exc:
            self._logger.error("Could not create staging artifact in %s: %s", self.temp_dir, exc)
            raise InternalIOError("Failed to stage the uploaded file.") from exc

        size = 0
        try:
            with handle:
                while True:
                    chunk = stream.read(self.chunk_size)
                    if not chunk:
                        break
                    size += len(chunk)
                    if limit is not None and size > limit:
                        raise SizeLimitExceeded(limit)
                    handle.write(chunk)
                handle.flush()
                if self.fsync:
                    os.fsync(handle.fileno())
        except SizeLimitExceeded:
            self._logger.warning(
                "Upload %r exceeded %d bytes; discarding staging artifact.", declared_name, limit
            )
            self.discard(path)
            raise
        except OSError as exc:
            self._logger.error("Writing staging artifact %s failed: %s", path.name, exc)
            self.discard(path)
            raise InternalIOError("Failed to stage the uploaded file.") from exc
        except BaseException:
            self.discard(path)
            raise

        self._logger.debug("Staged %r as %s (%d bytes)", declared_name, path.name, size)
        return StagedFile(path=path, size=size, declared_name=declared_name)

    def discard(self, path: Path) -> None:
        """Remove a staging artifact; failures are logged, not raised."""
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._logger.warning("Could not remove staging artifact %s: %s", path, exc)

    def orphans(self, max_age: timedelta, *, now: Optional[float] = None) -> list[Path]:
        """Return staging artifacts last modified more than ``max_age`` ago.

        In-flight uploads keep touching their artifact, so anything older than the
        threshold belongs to a request that disconnected or crashed.
        """
        if not self.temp_dir.is_dir():
            return []
        cutoff = (now if now is not None else time.time()) - max_age.total_seconds()
        stale: list[Path] = []
        for child in sorted(self.temp_dir.iterdir()):
            try:
                stat = child.stat()
            except FileNotFoundError:
                continue
            if child.is_file() and stat.st_mtime < cutoff:
                stale.append(child)
        return stale

    def sweep(self, max_age: timedelta, *, now: Optional[float] = None) -> list[Path]:
        """Delete orphaned staging artifacts and return the removed paths."""
        removed: list[Path] = []
        for path in self.orphans(max_age, now=now):
            self.discard(path)
            if not path.exists():
                removed.append(path)
        if removed:
            self._logger.info("Swept %d orphaned staging artifact(s).", len(removed))
        return removed

    def _open_exclusive(self, safe_name: str) -> tuple[Path, BinaryIO]:
        for candidate in self.collisions.candidates(safe_name):
            path = self.temp_dir / candidate
            try:
                return path, path.open("xb")
            except FileExistsError:
                continue
        raise FileExistsError(f"No free staging name for {safe_name}")


__all__ = ["DEFAULT_CHUNK_SIZE", "StagedFile", "StagingUploader"]
