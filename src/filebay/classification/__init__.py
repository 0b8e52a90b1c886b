"""Classification package."""

from .classifier import CategoryClassifier, classify, default_tables, extension_of
from .models import Category
from .tables import ClassificationTables, DuplicateMapping, find_duplicates

__all__ = [
    "Category",
    "CategoryClassifier",
    "ClassificationTables",
    "DuplicateMapping",
    "classify",
    "default_tables",
    "extension_of",
    "find_duplicates",
]
