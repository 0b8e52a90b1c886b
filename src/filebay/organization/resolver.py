"""Destination directory resolution for uploads."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from filebay.classification import Category, CategoryClassifier
from filebay.errors import ValidationError

MAX_NAMESPACE_DEPTH = 2


@dataclass(frozen=True)
class ResolvedTarget:
    """Directory chosen for an upload and the axis that selected it.

    Attributes:
        directory: Absolute destination directory under the storage root.
        relative: Root-relative directory using forward slashes.
        category: Explicit or inferred category of the upload.
        namespace: Namespace when that axis was selected, otherwise ``None``.
    """

    directory: Path
    relative: str
    category: Category
    namespace: Optional[str]


class PathResolver:
    """Pick exactly one target directory: explicit category, namespace, or inferred type."""

    def __init__(
        self,
        root: Path,
        classifier: CategoryClassifier | None = None,
        *,
        reserved: Iterable[str] = ("temp",),
    ) -> None:
        self.root = root
        self.classifier = classifier or CategoryClassifier()
        self.reserved = frozenset(name.lower() for name in reserved)

    def resolve(
        self,
        explicit_category: Optional[str],
        explicit_namespace: Optional[str],
        mime_type: Optional[str],
        filename: Optional[str],
    ) -> Path:
        """Return the destination directory; see :meth:`target` for precedence."""
        return self.target(explicit_category, explicit_namespace, mime_type, filename).directory

    def target(
        self,
        explicit_category: Optional[str],
        explicit_namespace: Optional[str],
        mime_type: Optional[str],
        filename: Optional[str],
    ) -> ResolvedTarget:
        """Resolve the destination with category before namespace before inference.

        Args:
            explicit_category: Caller-supplied category name, if any.
            explicit_namespace: Caller-supplied namespace (``name`` or ``parent/name``).
            mime_type: Declared MIME type used for inference.
            filename: Declared filename used for inference.

        Returns:
            ResolvedTarget: Selected directory and routing metadata.

        Raises:
            ValidationError: If the category is unknown or the namespace is unsafe.
        """
        if explicit_category:
            try:
                category = Category.parse(explicit_category)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            return ResolvedTarget(
                directory=self.root / category.value,
                relative=category.value,
                category=category,
                namespace=None,
            )

        inferred = self.classifier.classify(mime_type, filename)
        if explicit_namespace:
            relative = self.normalize_namespace(explicit_namespace)
            return ResolvedTarget(
                directory=self.root.joinpath(*relative.split("/")),
                relative=relative,
                category=inferred,
                namespace=relative,
            )

        return ResolvedTarget(
            directory=self.root / inferred.value,
            relative=inferred.value,
            category=inferred,
            namespace=None,
        )

    def normalize_namespace(self, namespace: str) -> str:
        """Validate a namespace of at most two segments and return it normalized."""
        segments = [segment for segment in namespace.replace("\\", "/").split("/") if segment]
        if not segments:
            raise ValidationError("Namespace must not be empty.")
        if len(segments) > MAX_NAMESPACE_DEPTH:
            raise ValidationError(
                f"Namespace '{namespace}' is nested too deeply; use 'parent/name' at most."
            )
        for segment in segments:
            validate_segment(segment, reserved=self.reserved, kind="namespace")
        return "/".join(segments)


def validate_segment(value: str, *, reserved: Iterable[str] = (), kind: str = "name") -> str:
    """Ensure ``value`` is a single safe path segment and return it.

    Raises:
        ValidationError: If the segment is empty, hidden, contains separators, or is reserved.
    """
    if not value or not value.strip():
        raise ValidationError(f"The {kind} must not be empty.")
    if value in {".", ".."} or value.startswith("."):
        raise ValidationError(f"The {kind} '{value}' is not allowed.")
    if any(char in value for char in ("/", "\\", "\x00")):
        raise ValidationError(f"The {kind} '{value}' must not contain path separators.")
    if value.lower() in {name.lower() for name in reserved}:
        raise ValidationError(f"The {kind} '{value}' is reserved.")
    return value


__all__ = ["MAX_NAMESPACE_DEPTH", "PathResolver", "ResolvedTarget", "validate_segment"]
