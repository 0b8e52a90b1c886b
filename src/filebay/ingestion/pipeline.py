"""Upload pipeline orchestration: stage, repair, resolve, and commit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from filebay.classification import Category
from filebay.errors import ValidationError
from filebay.organization.finalizer import Finalizer
from filebay.organization.models import UploadResult, UploadState
from filebay.organization.resolver import PathResolver

from .encoding import EncodingNormalizer, sanitize_filename
from .staging import StagedFile, StagingUploader

LOGGER = logging.getLogger(__name__)

UrlBuilder = Callable[[str, str], str]


def _relative_url(directory: str, filename: str) -> str:
    return f"/{directory}/{filename}"


class UploadPipeline:
    """Coordinate the components that turn a byte stream into a committed file.

    Each upload moves through ``received -> staged -> resolving -> committed``. A
    failure once the stream is staged moves it to ``failed`` and removes the staging
    artifact before the error propagates.
    """

    def __init__(
        self,
        stager: StagingUploader,
        resolver: PathResolver,
        finalizer: Finalizer,
        normalizer: EncodingNormalizer | None = None,
        *,
        fallback_name: str = "unnamed",
        url_builder: UrlBuilder | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.stager = stager
        self.resolver = resolver
        self.finalizer = finalizer
        self.normalizer = normalizer or EncodingNormalizer()
        self.fallback_name = fallback_name
        self.url_builder = url_builder or _relative_url
        self._logger = logger or LOGGER

    def upload(
        self,
        stream: BinaryIO,
        declared_name: str,
        mime_type: Optional[str],
        *,
        category: Optional[str] = None,
        namespace: Optional[str] = None,
        custom_name: Optional[str] = None,
        required_category: Optional[Category] = None,
        max_bytes: Optional[int] = None,
    ) -> UploadResult:
        """Stage and commit one upload.

        Args:
            stream: Readable binary stream with the upload content.
            declared_name: Filename declared by the client (possibly mis-decoded).
            mime_type: Declared MIME type.
            category: Explicit category; takes precedence over ``namespace``.
            namespace: Explicit namespace directory.
            custom_name: Replacement stem for the stored name; the extension is kept.
            required_category: Reject uploads that do not classify as this category.
            max_bytes: Size limit for this upload.

        Returns:
            UploadResult: Location and metadata of the committed file.
        """
        state = UploadState.RECEIVED
        self._logger.debug("Upload %r: %s", declared_name, state.value)
        staged = self.stager.stage(stream, declared_name, max_bytes=max_bytes)
        state = UploadState.STAGED
        self._logger.debug("Upload %r: %s", declared_name, state.value)

        try:
            state = UploadState.RESOLVING
            original_name = self.normalizer.fix(declared_name)
            desired_name = self._desired_name(original_name, custom_name)
            target = self.resolver.target(category, namespace, mime_type, original_name)
            if required_category is not None and target.category is not required_category:
                raise ValidationError(
                    f"Only {required_category.value} are accepted; got {target.category.value}."
                )
            final_path = self.finalizer.commit(staged.path, target.directory, desired_name)
        except Exception as exc:
            self._fail(staged, exc)
            raise

        state = UploadState.COMMITTED
        self._logger.info(
            "Upload %r %s as %s/%s (%d bytes)",
            original_name,
            state.value,
            target.relative,
            final_path.name,
            staged.size,
        )
        return UploadResult(
            url=self.url_builder(target.relative, final_path.name),
            filename=final_path.name,
            original_name=original_name,
            mimetype=mime_type,
            category=target.category,
            namespace=target.namespace,
            directory=target.relative,
            size=staged.size,
        )

    def _desired_name(self, original_name: str, custom_name: Optional[str]) -> str:
        name = sanitize_filename(original_name, fallback=self.fallback_name)
        if not custom_name:
            return name
        custom = sanitize_filename(self.normalizer.fix(custom_name), fallback=self.fallback_name)
        extension = Path(name).suffix
        if extension and Path(custom).suffix.lower() != extension.lower():
            custom = f"{custom}{extension}"
        return custom

    def _fail(self, staged: StagedFile, exc: BaseException) -> None:
        self._logger.warning(
            "Upload %r %s: %s", staged.declared_name, UploadState.FAILED.value, exc
        )
        self.stager.discard(staged.path)


__all__ = ["UploadPipeline", "UrlBuilder"]
