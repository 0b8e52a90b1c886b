"""Tests for destination directory resolution."""

from pathlib import Path

import pytest

from filebay.classification import Category
from filebay.errors import ValidationError
from filebay.organization.resolver import PathResolver, validate_segment

CLASSIFIABLE = ("image/png", "photo.png")
UNCLASSIFIABLE = ("application/x-unknown", "blob.xyz")


@pytest.mark.parametrize("category", [None, "documents"])
@pytest.mark.parametrize("namespace", [None, "projects"])
@pytest.mark.parametrize("inputs", [CLASSIFIABLE, UNCLASSIFIABLE], ids=["known", "unknown"])
def test_resolve_precedence(tmp_path: Path, category, namespace, inputs) -> None:
    resolver = PathResolver(tmp_path)
    mime_type, filename = inputs
    inferred = Category.IMAGES if inputs == CLASSIFIABLE else Category.OTHERS

    target = resolver.target(category, namespace, mime_type, filename)

    if category:
        assert target.directory == tmp_path / "documents"
        assert target.category is Category.DOCUMENTS
        assert target.namespace is None
    elif namespace:
        assert target.directory == tmp_path / "projects"
        assert target.category is inferred
        assert target.namespace == "projects"
    else:
        assert target.directory == tmp_path / inferred.value
        assert target.category is inferred
        assert target.namespace is None
    assert resolver.resolve(category, namespace, mime_type, filename) == target.directory


def test_resolve_performs_no_io(tmp_path: Path) -> None:
    resolver = PathResolver(tmp_path / "missing-root")

    directory = resolver.resolve(None, "team/assets", None, "a.txt")

    assert directory == tmp_path / "missing-root" / "team" / "assets"
    assert not (tmp_path / "missing-root").exists()


def test_unknown_category_is_a_validation_error(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="Invalid category"):
        PathResolver(tmp_path).resolve("pictures", None, None, "a.png")


@pytest.mark.parametrize("namespace", ["../etc", "a/b/c", "temp", ".hidden", "a/..", "TEMP/x"])
def test_unsafe_namespaces_are_rejected(tmp_path: Path, namespace: str) -> None:
    with pytest.raises(ValidationError):
        PathResolver(tmp_path).resolve(None, namespace, None, "a.txt")


def test_namespace_is_normalized(tmp_path: Path) -> None:
    resolver = PathResolver(tmp_path)
    assert resolver.normalize_namespace("/team\\assets/") == "team/assets"


@pytest.mark.parametrize("value", ["", " ", ".", "..", "a/b", "a\\b", "nul\x00"])
def test_validate_segment_rejects_unsafe_values(value: str) -> None:
    with pytest.raises(ValidationError):
        validate_segment(value)


def test_validate_segment_accepts_plain_names() -> None:
    assert validate_segment("photos") == "photos"
    assert validate_segment("报告 2024") == "报告 2024"
