"""Request dependencies shared by the HTTP routes."""

from typing import Any, Optional

from fastapi import Header, Request

from filebay.auth import TokenService
from filebay.errors import AuthenticationError
from filebay.services import StorageServices

from .ratelimit import SlidingWindowRateLimiter


def get_services(request: Request) -> StorageServices:
    return request.app.state.services


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def require_auth(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Optional[dict[str, Any]]:
    """Return the verified token claims, or ``None`` when authentication is disabled.

    Raises:
        AuthenticationError: If the bearer token is missing or invalid.
    """
    services = get_services(request)
    if not services.config.auth.enabled:
        return None

    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("A bearer token is required.")

    claims = get_tokens(request).verify(token)
    if claims is None:
        raise AuthenticationError("The token is invalid or has expired.")
    return claims


def avatar_rate_limit(request: Request) -> None:
    """Count the request against the avatar route's per-client budget."""
    limiter: SlidingWindowRateLimiter = request.app.state.avatar_limiter
    client = request.client.host if request.client else "unknown"
    limiter.hit(client)


__all__ = ["avatar_rate_limit", "get_services", "get_tokens", "require_auth"]
