"""In-process sliding-window rate limiting for unauthenticated routes."""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from filebay.errors import RateLimitExceeded


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per key within any ``window_seconds`` interval."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = max(1, int(limit))
        self._window = float(window_seconds)
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._next_prune = 0.0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def tracked_keys(self) -> int:
        """Number of keys with hits inside the current window."""
        with self._lock:
            self._prune(self._clock())
            return len(self._hits)

    def hit(self, key: str) -> None:
        """Record a request for ``key``.

        Raises:
            RateLimitExceeded: If ``key`` already used its budget for the current window.
        """
        now = self._clock()
        with self._lock:
            if now >= self._next_prune:
                self._prune(now)
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - self._window:
                hits.popleft()
            if len(hits) >= self._limit:
                retry_after = max(1, math.ceil(hits[0] + self._window - now))
                raise RateLimitExceeded(retry_after)
            hits.append(now)

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            hits = self._hits.get(key)
            if not hits:
                return self._limit
            active = sum(1 for stamp in hits if stamp > now - self._window)
            return max(self._limit - active, 0)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def _prune(self, now: float) -> None:
        cutoff = now - self._window
        self._next_prune = now + self._window
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]


__all__ = ["SlidingWindowRateLimiter"]
