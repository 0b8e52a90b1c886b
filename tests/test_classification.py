"""Tests for category classification and table validation."""

import pytest

from filebay.classification import (
    Category,
    CategoryClassifier,
    ClassificationTables,
    classify,
    default_tables,
    extension_of,
    find_duplicates,
)
from filebay.classification.tables import EXTENSIONS_BY_CATEGORY, MIME_TYPES_BY_CATEGORY
from filebay.config import ConfigError


@pytest.mark.parametrize(
    ("mime_type", "filename", "expected"),
    [
        ("application/pdf", "report.pdf", Category.DOCUMENTS),
        ("image/png", "photo.png", Category.IMAGES),
        ("IMAGE/JPEG; charset=binary", "photo", Category.IMAGES),
        (None, "clip.MP4", Category.VIDEOS),
        ("application/octet-stream", "song.mp3", Category.AUDIOS),
        ("", "main.ts", Category.CODES),
        (None, "font.woff2", Category.FONTS),
        (None, "bundle.tar.gz", Category.ARCHIVES),
    ],
)
def test_classify_known_types(mime_type, filename, expected) -> None:
    assert classify(mime_type, filename) is expected


def test_mime_type_takes_priority_over_extension() -> None:
    assert classify("text/html", "invoice.pdf") is Category.CODES
    assert classify("image/png", "notes.txt") is Category.IMAGES


@pytest.mark.parametrize(
    ("mime_type", "filename"),
    [
        (None, None),
        ("", ""),
        ("application/x-unknown", "blob.unknownext"),
        (None, "README"),
        ("weird", ".hidden"),
    ],
)
def test_classify_is_total(mime_type, filename) -> None:
    assert classify(mime_type, filename) is Category.OTHERS


def test_extension_of_handles_windows_paths_and_case() -> None:
    assert extension_of("C:\\Users\\me\\Photo.JPG") == ".jpg"
    assert extension_of("archive") == ""
    assert extension_of(None) == ""


def test_builtin_tables_have_no_duplicates() -> None:
    assert find_duplicates(MIME_TYPES_BY_CATEGORY, table="mime") == []
    assert find_duplicates(EXTENSIONS_BY_CATEGORY, table="extension") == []


def test_builtin_tables_are_shared() -> None:
    assert default_tables() is default_tables()
    assert CategoryClassifier().tables is default_tables()


def test_extra_mappings_extend_the_tables() -> None:
    tables = ClassificationTables.build(
        extra_mime_types={"documents": ["application/x-custom-doc"]},
        extra_extensions={"Codes": ["rs", ".KT"]},
    )
    classifier = CategoryClassifier(tables)

    assert classifier.classify("application/x-custom-doc", None) is Category.DOCUMENTS
    assert classifier.classify(None, "lib.rs") is Category.CODES
    assert classifier.classify(None, "Main.kt") is Category.CODES


def test_duplicate_extra_mapping_is_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        ClassificationTables.build(extra_extensions={"documents": [".png"]})

    message = str(excinfo.value)
    assert "'.png'" in message
    assert "images" in message and "documents" in message


def test_unknown_category_in_extras_is_rejected() -> None:
    with pytest.raises(ConfigError):
        ClassificationTables.build(extra_mime_types={"spreadsheets": ["text/csv"]})


def test_tables_are_read_only() -> None:
    tables = ClassificationTables.build()
    with pytest.raises(TypeError):
        tables.extension_index[".png"] = Category.OTHERS  # type: ignore[index]


def test_category_parse() -> None:
    assert Category.parse(" Images ") is Category.IMAGES
    with pytest.raises(ValueError, match="Invalid category"):
        Category.parse("pictures")
