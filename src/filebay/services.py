"""Assembly of the storage components from a loaded configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from urllib.parse import quote

from filebay.classification import Category, CategoryClassifier, ClassificationTables
from filebay.config.models import FilebayConfig
from filebay.ingestion import EncodingNormalizer, StagingUploader, UploadPipeline
from filebay.ingestion.pipeline import UrlBuilder
from filebay.organization import CollisionResolver, Finalizer, PathResolver
from filebay.serving import ContentNegotiator
from filebay.storage import DirectoryManager

LOGGER = logging.getLogger(__name__)

MEGABYTE = 1024 * 1024


@dataclass
class StorageServices:
    """The wired storage core for one storage root.

    Attributes:
        config: Configuration the services were built from.
        root: Absolute storage root.
        temp_dir: Staging subtree under ``root``.
        classifier: Category classifier backed by the validated tables.
        directories: Directory tree operations.
        stager: Staging uploader writing into ``temp_dir``.
        pipeline: Upload orchestration.
        negotiator: Response header negotiation for served files.
    """

    config: FilebayConfig
    root: Path
    temp_dir: Path
    classifier: CategoryClassifier
    directories: DirectoryManager
    stager: StagingUploader
    pipeline: UploadPipeline
    negotiator: ContentNegotiator

    @property
    def max_upload_bytes(self) -> int:
        return self.config.storage.max_upload_mb * MEGABYTE

    @property
    def max_avatar_bytes(self) -> int:
        return self.config.avatars.max_upload_mb * MEGABYTE

    @property
    def orphan_max_age(self) -> timedelta:
        return timedelta(hours=self.config.storage.orphan_max_age_hours)

    def prepare(self) -> None:
        """Create the storage root, the staging subtree, and one directory per category."""
        self.directories.ensure_directory(self.root)
        self.directories.ensure_directory(self.temp_dir)
        for category in Category:
            self.directories.ensure_directory(self.root / category.value)
        LOGGER.info("Storage root ready at %s", self.root)


def build_services(config: FilebayConfig) -> StorageServices:
    """Instantiate the storage core described by ``config``.

    Raises:
        ConfigError: If the configured classification tables are inconsistent.
    """
    storage = config.storage
    root = Path(storage.root).expanduser().resolve()
    temp_dir = root / storage.temp_dirname
    reserved = (storage.temp_dirname,)

    tables = ClassificationTables.build(
        extra_mime_types=config.classification.extra_mime_types,
        extra_extensions=config.classification.extra_extensions,
    )
    classifier = CategoryClassifier(tables)
    collisions = CollisionResolver(
        config.organization.conflict_resolution,
        max_attempts=config.organization.max_attempts,
    )
    stager = StagingUploader(
        temp_dir,
        collisions,
        max_bytes=storage.max_upload_mb * MEGABYTE,
        chunk_size=storage.chunk_size,
        fsync=storage.fsync,
    )
    pipeline = UploadPipeline(
        stager,
        PathResolver(root, classifier, reserved=reserved),
        Finalizer(collisions, fsync=storage.fsync),
        EncodingNormalizer(config.naming.source_encoding),
        fallback_name=config.naming.fallback_name,
        url_builder=_url_builder(config.server.public_base_url),
    )
    return StorageServices(
        config=config,
        root=root,
        temp_dir=temp_dir,
        classifier=classifier,
        directories=DirectoryManager(
            root, temp_dirname=storage.temp_dirname, classifier=classifier
        ),
        stager=stager,
        pipeline=pipeline,
        negotiator=ContentNegotiator(config.serving.cache_max_age_seconds),
    )


def _url_builder(base_url: str) -> UrlBuilder:
    base = base_url.rstrip("/")

    def build(directory: str, filename: str) -> str:
        return f"{base}/{quote(directory)}/{quote(filename)}"

    return build


__all__ = ["StorageServices", "build_services"]
