"""Bearer token issuance and verification."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from filebay.config.models import AuthSettings

LOGGER = logging.getLogger(__name__)

_LOGGED_TOKEN_PREFIX = 20


class TokenService:
    """Sign and verify HS256 tokens carrying ``userId`` and ``userType`` claims."""

    def __init__(
        self,
        secret_key: str,
        *,
        issuer: str = "filebay",
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=7),
        logger: logging.Logger | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self.ttl = ttl
        self._logger = logger or LOGGER

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "TokenService":
        return cls(
            settings.secret_key,
            issuer=settings.issuer,
            algorithm=settings.algorithm,
            ttl=timedelta(days=settings.token_ttl_days),
        )

    def issue(self, user_id: Any, user_type: str, *, now: Optional[datetime] = None) -> str:
        """Return a signed token for ``user_id``.

        Args:
            user_id: Identifier of the user; stored as a string.
            user_type: Free-form role label copied into the ``userType`` claim.
            now: Issue time; defaults to the current UTC time.

        Returns:
            str: Encoded JWT.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "userId": str(user_id),
            "userType": user_type,
            "iss": self.issuer,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[dict[str, Any]]:
        """Return the token claims, or ``None`` when the token is not acceptable."""
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iss"]},
            )
        except jwt.InvalidTokenError as exc:
            self._logger.warning(
                "Token verification failed: %s (token=%s...)",
                exc,
                token[:_LOGGED_TOKEN_PREFIX],
            )
            return None


__all__ = ["TokenService"]
