"""Tests for response header negotiation."""

import pytest

from filebay.serving import DEFAULT_CONTENT_TYPE, ContentNegotiator


def test_previewable_extension_is_inline() -> None:
    headers = ContentNegotiator().headers(".png", False)

    assert headers.content_type == "image/png"
    assert headers.disposition == "inline"
    assert headers.cache_control == "public, max-age=31536000, immutable"


def test_explicit_download_forces_attachment() -> None:
    assert ContentNegotiator().headers(".png", True).disposition == "attachment"


@pytest.mark.parametrize("extension", [".zip", ".docx", ".svg", ".exe", ""])
def test_non_previewable_extensions_are_attachments(extension: str) -> None:
    assert ContentNegotiator().headers(extension, False).disposition == "attachment"


@pytest.mark.parametrize(
    ("extension", "expected"),
    [(".PDF", "application/pdf"), ("mp4", "video/mp4"), (".unknown", DEFAULT_CONTENT_TYPE)],
)
def test_content_type_lookup(extension: str, expected: str) -> None:
    assert ContentNegotiator().headers(extension, False).content_type == expected


def test_filename_parameters_are_encoded() -> None:
    headers = ContentNegotiator().headers(".pdf", True, filename="报告.pdf")

    assert headers.disposition.startswith("attachment; ")
    assert "filename*=UTF-8''%E6%8A%A5%E5%91%8A.pdf" in headers.disposition
    assert 'filename="__.pdf"' in headers.disposition


def test_cache_policy_is_configurable() -> None:
    headers = ContentNegotiator(cache_max_age_seconds=60).headers(".png", False)

    assert headers.as_dict()["Cache-Control"] == "public, max-age=60, immutable"
