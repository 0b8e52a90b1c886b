"""Ingestion of uploaded byte streams."""

from .encoding import EncodingNormalizer, sanitize_filename
from .pipeline import UploadPipeline
from .staging import StagedFile, StagingUploader

__all__ = [
    "EncodingNormalizer",
    "StagedFile",
    "StagingUploader",
    "UploadPipeline",
    "sanitize_filename",
]
