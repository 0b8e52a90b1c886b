"""HTTP surface of Filebay."""

from .app import create_app
from .ratelimit import SlidingWindowRateLimiter

__all__ = ["SlidingWindowRateLimiter", "create_app"]
