"""Tests for directory tree operations."""

import os
from pathlib import Path

import pytest

from filebay.classification import Category
from filebay.errors import (
    ConflictError,
    NonEmptyDirectoryError,
    NotFoundError,
    ValidationError,
)
from filebay.storage import DirectoryManager


@pytest.fixture()
def manager(tmp_path: Path) -> DirectoryManager:
    root = tmp_path / "uploads"
    (root / "temp").mkdir(parents=True)
    (root / "documents").mkdir()
    return DirectoryManager(root)


def test_create_directory_twice_conflicts(manager: DirectoryManager) -> None:
    assert manager.create_directory(None, "photos") == "photos"

    with pytest.raises(ConflictError):
        manager.create_directory(None, "photos")

    assert [path.name for path in manager.root.iterdir() if path.name == "photos"] == ["photos"]


def test_create_directory_under_parent(manager: DirectoryManager) -> None:
    manager.create_directory(None, "team")

    assert manager.create_directory("team", "assets") == "team/assets"
    assert (manager.root / "team" / "assets").is_dir()


def test_create_directory_with_missing_parent(manager: DirectoryManager) -> None:
    with pytest.raises(NotFoundError):
        manager.create_directory("ghost", "assets")

    assert not (manager.root / "ghost").exists()


def test_create_directory_stops_at_two_levels(manager: DirectoryManager) -> None:
    manager.create_directory(None, "team")
    manager.create_directory("team", "assets")

    with pytest.raises(ValidationError):
        manager.create_directory("team/assets", "icons")

    assert not (manager.root / "team" / "assets" / "icons").exists()


@pytest.mark.parametrize("name", ["temp", "..", "a/b", ".secret", ""])
def test_create_directory_rejects_unsafe_names(manager: DirectoryManager, name: str) -> None:
    with pytest.raises(ValidationError):
        manager.create_directory(None, name)


def test_delete_non_empty_directory_reports_item_count(manager: DirectoryManager) -> None:
    manager.create_directory(None, "album")
    (manager.root / "album" / "cover.png").write_bytes(b"png")

    with pytest.raises(NonEmptyDirectoryError) as excinfo:
        manager.delete_entry("album")

    assert excinfo.value.item_count == 1
    assert excinfo.value.to_payload()["error"]["details"] == {"itemCount": 1}
    assert excinfo.value.status_code == 400
    assert (manager.root / "album" / "cover.png").read_bytes() == b"png"


def test_delete_counts_every_child(manager: DirectoryManager) -> None:
    album = manager.root / "album"
    (album / "nested").mkdir(parents=True)
    (album / "a.txt").write_text("a", encoding="utf-8")
    (album / ".hidden").write_text("h", encoding="utf-8")

    with pytest.raises(NonEmptyDirectoryError) as excinfo:
        manager.delete_entry("album")

    assert excinfo.value.item_count == 3


def test_delete_empty_directory(manager: DirectoryManager) -> None:
    manager.create_directory(None, "empty")

    entry = manager.delete_entry("empty")

    assert entry.is_directory is True
    assert not (manager.root / "empty").exists()


def test_delete_file(manager: DirectoryManager) -> None:
    target = manager.root / "documents" / "a.txt"
    target.write_text("hello", encoding="utf-8")

    entry = manager.delete_entry("documents/a.txt")

    assert entry.name == "a.txt"
    assert entry.size == 5
    assert not target.exists()


def test_delete_missing_entry(manager: DirectoryManager) -> None:
    with pytest.raises(NotFoundError):
        manager.delete_entry("documents/missing.txt")


def test_delete_entry_removed_by_another_request(
    manager: DirectoryManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    (manager.root / "documents" / "a.txt").write_text("a", encoding="utf-8")

    def vanished(path: Path):
        raise FileNotFoundError(path)

    monkeypatch.setattr(manager, "_describe", vanished)

    with pytest.raises(NotFoundError):
        manager.delete_entry("documents/a.txt")


@pytest.mark.parametrize("path", ["../outside", "temp", "temp/x", "documents/../../x"])
def test_delete_rejects_paths_outside_the_tree(manager: DirectoryManager, path: str) -> None:
    with pytest.raises(ValidationError):
        manager.delete_entry(path)


def test_list_root_hides_staging_and_hidden_entries(manager: DirectoryManager) -> None:
    (manager.root / ".DS_Store").write_text("", encoding="utf-8")
    manager.create_directory(None, "photos")

    names = [entry.name for entry in manager.list_entries()]

    assert names == ["documents", "photos"]


def test_list_directory_describes_entries(manager: DirectoryManager) -> None:
    (manager.root / "documents" / "a.txt").write_text("abc", encoding="utf-8")
    (manager.root / "documents" / "sub").mkdir()

    entries = {entry.name: entry for entry in manager.list_entries("documents")}

    assert entries["a.txt"].is_directory is False
    assert entries["a.txt"].size == 3
    assert entries["sub"].is_directory is True
    assert entries["sub"].size == 0
    assert entries["a.txt"].modified_at.tzinfo is not None
    assert set(entries["a.txt"].to_json()) == {
        "name",
        "isDirectory",
        "size",
        "modifiedAt",
        "createdAt",
    }


def test_list_skips_entries_that_disappear(manager: DirectoryManager) -> None:
    documents = manager.root / "documents"
    (documents / "kept.txt").write_text("k", encoding="utf-8")
    os.symlink(documents / "deleted.txt", documents / "dangling.txt")

    names = [entry.name for entry in manager.list_entries("documents")]

    assert names == ["kept.txt"]


def test_list_missing_directory(manager: DirectoryManager) -> None:
    with pytest.raises(NotFoundError):
        manager.list_entries("nothing-here")


def test_file_info_for_category_and_namespace(manager: DirectoryManager) -> None:
    (manager.root / "documents" / "report.pdf").write_bytes(b"%PDF")
    manager.create_directory(None, "projects")
    (manager.root / "projects" / "logo.png").write_bytes(b"png!")

    report = manager.file_info("documents", "report.pdf")
    logo = manager.file_info("projects", "logo.png")

    assert report.category is Category.DOCUMENTS
    assert report.namespace is None
    assert report.size == 4
    assert report.relative_path == "documents/report.pdf"
    assert logo.category is Category.IMAGES
    assert logo.namespace == "projects"


def test_file_info_uses_category_of_directory(manager: DirectoryManager) -> None:
    (manager.root / "documents" / "scan.png").write_bytes(b"png")

    info = manager.file_info("documents", "scan.png")

    assert info.category is Category.DOCUMENTS
    assert info.namespace is None


def test_file_info_requires_both_parameters(manager: DirectoryManager) -> None:
    with pytest.raises(ValidationError):
        manager.file_info("documents", "")
    with pytest.raises(ValidationError):
        manager.file_info("", "a.txt")


def test_file_info_missing_file(manager: DirectoryManager) -> None:
    with pytest.raises(NotFoundError):
        manager.file_info("documents", "missing.txt")


def test_resolve_file(manager: DirectoryManager) -> None:
    target = manager.root / "documents" / "a.txt"
    target.write_text("a", encoding="utf-8")
    (manager.root / "temp" / "staged").write_text("s", encoding="utf-8")

    assert manager.resolve_file("documents/a.txt") == target.resolve()
    for missing in ("temp/staged", "documents", "../etc/passwd", "documents/b.txt"):
        with pytest.raises(NotFoundError):
            manager.resolve_file(missing)


def test_ensure_directory_is_idempotent(manager: DirectoryManager) -> None:
    path = manager.root / "videos"

    manager.ensure_directory(path)
    manager.ensure_directory(path)

    assert path.is_dir()
