"""Atomic commit of staged uploads into their final directory."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Callable

from filebay.errors import FilebayError, InternalIOError
from filebay.storage.paths import ensure_directory

from .collisions import CollisionResolver

LOGGER = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"

LinkFunc = Callable[[Path, Path], None]

_LINK_UNSUPPORTED = frozenset({errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP, errno.ENOSYS})


class Finalizer:
    """Move staging artifacts into place without ever exposing a partial file.

    A name is claimed with ``os.link``, which atomically creates the destination only
    if it does not exist yet. A conflict simply moves on to the next candidate from the
    :class:`CollisionResolver`, so two concurrent commits can never claim the same name
    and a reader only ever observes the fully written file.

    When the staging area lives on another volume the link fails with ``EXDEV``. The
    artifact is then copied to a hidden ``.part`` file inside the target directory,
    flushed to disk, and linked into place from there.

    Filesystems without hard links reject ``os.link`` with ``EPERM`` or ``ENOTSUP``. The
    name is then reserved with an exclusive ``O_CREAT | O_EXCL`` open and the artifact
    renamed over the empty placeholder with ``os.replace``; readers may briefly see
    that placeholder as an empty file, never a partially written one.
    """

    def __init__(
        self,
        collisions: CollisionResolver | None = None,
        *,
        fsync: bool = True,
        link: LinkFunc | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.collisions = collisions or CollisionResolver()
        self.fsync = fsync
        self._link: LinkFunc = link or os.link
        self._logger = logger or LOGGER

    def commit(self, staging_path: Path, target_directory: Path, desired_name: str) -> Path:
        """Commit ``staging_path`` as ``target_directory/<free name>``.

        Args:
            staging_path: Fully written staging artifact.
            target_directory: Destination directory, created when missing.
            desired_name: Preferred final filename.

        Returns:
            Path: Final location of the committed file.

        Raises:
            InternalIOError: If the directory cannot be created or the file cannot be placed.
        """
        try:
            ensure_directory(target_directory)
            destination = self._claim(staging_path, target_directory, desired_name)
        except FilebayError:
            self._discard(staging_path)
            raise
        except OSError as exc:
            self._logger.error(
                "Commit of %s into %s failed: %s", staging_path.name, target_directory, exc
            )
            self._discard(staging_path)
            raise InternalIOError("Failed to store the uploaded file.") from exc

        try:
            staging_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._logger.warning(
                "Committed %s but could not remove staging artifact %s: %s",
                destination.name,
                staging_path,
                exc,
            )
        self._logger.info("Committed %s", destination)
        return destination

    def _claim(self, staging_path: Path, directory: Path, desired_name: str) -> Path:
        source = staging_path
        copied: Path | None = None
        hard_links = True
        try:
            for candidate in self.collisions.candidates(desired_name):
                destination = directory / candidate
                while True:
                    try:
                        self._place(source, destination, hard_links=hard_links)
                    except FileExistsError:
                        self._logger.debug(
                            "Name %s is taken in %s; trying next.", candidate, directory
                        )
                        break
                    except OSError as exc:
                        if exc.errno == errno.EXDEV and copied is None:
                            self._logger.info(
                                "Staging area is on another volume; copying %s into %s.",
                                staging_path.name,
                                directory,
                            )
                            copied = self._copy_into(staging_path, directory)
                            source = copied
                            continue
                        if hard_links and exc.errno in _LINK_UNSUPPORTED:
                            self._logger.info(
                                "Hard links are not supported in %s; using exclusive rename.",
                                directory,
                            )
                            hard_links = False
                            continue
                        raise
                    if self.fsync:
                        _fsync_directory(directory)
                    return destination
        finally:
            if copied is not None:
                _remove_quietly(copied, self._logger)

        raise InternalIOError("Could not allocate a unique file name.")

    def _place(self, source: Path, destination: Path, *, hard_links: bool) -> None:
        if hard_links:
            self._link(source, destination)
            return
        # os.replace overwrites; the exclusive open is what claims the name.
        fd = os.open(destination, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        os.close(fd)
        try:
            os.replace(source, destination)
        except OSError:
            _remove_quietly(destination, self._logger)
            raise

    def _copy_into(self, source: Path, directory: Path) -> Path:
        partial = directory / f".{uuid.uuid4().hex}{PARTIAL_SUFFIX}"
        try:
            with source.open("rb") as reader, partial.open("xb") as writer:
                shutil.copyfileobj(reader, writer)
                writer.flush()
                if self.fsync:
                    os.fsync(writer.fileno())
        except OSError:
            _remove_quietly(partial, self._logger)
            raise
        return partial

    def _discard(self, staging_path: Path) -> None:
        _remove_quietly(staging_path, self._logger)


def _remove_quietly(path: Path, logger: logging.Logger) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to clean up %s: %s", path, exc)


def _fsync_directory(directory: Path) -> None:
    if os.name != "posix":
        return
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


__all__ = ["Finalizer", "PARTIAL_SUFFIX"]
