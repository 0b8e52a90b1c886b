"""Tests for bearer token issuance and verification."""

import logging
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from filebay.auth import TokenService
from filebay.config.models import AuthSettings


def test_issued_token_round_trips() -> None:
    service = TokenService("secret")

    claims = service.verify(service.issue(42, "admin"))

    assert claims is not None
    assert claims["userId"] == "42"
    assert claims["userType"] == "admin"
    assert claims["iss"] == "filebay"


def test_token_expires_after_ttl() -> None:
    service = TokenService("secret", ttl=timedelta(days=7))
    issued = datetime.now(timezone.utc) - timedelta(days=8)

    assert service.verify(service.issue(1, "user", now=issued)) is None


def test_wrong_issuer_is_rejected() -> None:
    token = TokenService("secret", issuer="someone-else").issue(1, "user")

    assert TokenService("secret").verify(token) is None


def test_token_without_expiry_is_rejected() -> None:
    token = jwt.encode({"userId": "1", "iss": "filebay"}, "secret", algorithm="HS256")

    assert TokenService("secret").verify(token) is None


def test_failures_are_logged_with_truncated_token(caplog: pytest.LogCaptureFixture) -> None:
    token = TokenService("other").issue(1, "user")

    with caplog.at_level(logging.WARNING, logger="filebay.auth"):
        assert TokenService("secret").verify(token) is None

    message = caplog.records[-1].getMessage()
    assert token[:20] in message
    assert token not in message


def test_from_settings() -> None:
    settings = AuthSettings(secret_key="k", issuer="i", token_ttl_days=2)

    service = TokenService.from_settings(settings)

    assert service.issuer == "i"
    assert service.ttl == timedelta(days=2)
    assert service.verify(service.issue("u", "t"))["userId"] == "u"  # type: ignore[index]
