"""Serving helpers."""

from .negotiation import (
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    PREVIEWABLE_EXTENSIONS,
    ContentNegotiator,
    NegotiatedHeaders,
)

__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "PREVIEWABLE_EXTENSIONS",
    "ContentNegotiator",
    "NegotiatedHeaders",
]
