"""Name collision resolution within a single directory."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable, Iterator, Literal

from filebay.errors import InternalIOError

Strategy = Literal["timestamp", "append_number"]


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def split_name(name: str) -> tuple[str, str]:
    """Split ``name`` into stem and extension (``"a.tar.gz"`` -> ``("a.tar", ".gz")``)."""
    stem, ext = os.path.splitext(name)
    if not stem:
        return name, ""
    return stem, ext


class CollisionResolver:
    """Generate names that do not collide with existing entries of a directory.

    The desired name is tried first. After that every candidate carries a strictly
    increasing disambiguator before the extension: epoch milliseconds for the
    ``timestamp`` strategy, or ``1, 2, 3, ...`` for ``append_number``.

    :meth:`reserve` only checks existence. Callers that create the file must do so with
    an exclusive primitive and move on to the next candidate from :meth:`candidates`
    when it reports a conflict; see :class:`filebay.organization.finalizer.Finalizer`.
    """

    def __init__(
        self,
        strategy: Strategy = "timestamp",
        *,
        max_attempts: int = 1000,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        if strategy not in ("timestamp", "append_number"):
            raise ValueError(f"Unknown conflict resolution strategy '{strategy}'.")
        self.strategy = strategy
        self.max_attempts = max(1, max_attempts)
        self._clock = clock

    def candidates(self, desired: str) -> Iterator[str]:
        """Yield ``desired`` followed by disambiguated alternatives."""
        yield desired
        stem, ext = split_name(desired)
        value = self._clock() if self.strategy == "timestamp" else 1
        for _ in range(self.max_attempts - 1):
            yield f"{stem}-{value}{ext}"
            value += 1

    def reserve(self, directory: Path, desired: str) -> str:
        """Return ``desired`` if it is free in ``directory``, else the first free variant.

        Raises:
            InternalIOError: If every candidate is taken.
        """
        for candidate in self.candidates(desired):
            if not os.path.lexists(directory / candidate):
                return candidate
        raise InternalIOError("Could not allocate a unique file name.")


__all__ = ["CollisionResolver", "Strategy", "split_name"]
