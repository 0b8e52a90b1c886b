"""Configuration models describing Filebay settings."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilebayBaseModel(BaseModel):
    """Shared configuration for Filebay Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(FilebayBaseModel):
    """Storage layout and upload limits.

    Attributes:
        root: Storage root holding one directory per category or namespace.
        temp_dirname: Name of the reserved staging directory under the root.
        max_upload_mb: Maximum accepted upload size in megabytes.
        chunk_size: Number of bytes copied per read while staging.
        orphan_max_age_hours: Age after which a staging artifact counts as orphaned.
        fsync: Whether staged and copied files are flushed to disk before commit.
    """

    root: Path = Path("uploads")
    temp_dirname: str = "temp"
    max_upload_mb: int = Field(default=50, gt=0)
    chunk_size: int = Field(default=1024 * 1024, gt=0)
    orphan_max_age_hours: float = Field(default=24, gt=0)
    fsync: bool = True


class OrganizationOptions(FilebayBaseModel):
    """Settings that govern how committed files are named.

    Attributes:
        conflict_resolution: Disambiguator appended when a name is already taken.
        max_attempts: Upper bound on candidate names tried before giving up.
    """

    conflict_resolution: Literal["timestamp", "append_number"] = "timestamp"
    max_attempts: int = Field(default=1000, gt=0)


class NamingOptions(FilebayBaseModel):
    """Filename repair options.

    Attributes:
        source_encoding: Single-byte code page the transport mis-decoded names with.
        fallback_name: Stem used when a declared name sanitizes to nothing.
    """

    source_encoding: str = "latin-1"
    fallback_name: str = "unnamed"


class ClassificationSettings(FilebayBaseModel):
    """Additional classification mappings merged into the built-in tables.

    Attributes:
        extra_mime_types: Category name to MIME types it should also accept.
        extra_extensions: Category name to file extensions it should also accept.
    """

    extra_mime_types: Dict[str, List[str]] = Field(default_factory=dict)
    extra_extensions: Dict[str, List[str]] = Field(default_factory=dict)


class ServingSettings(FilebayBaseModel):
    """Static file serving options."""

    cache_max_age_seconds: int = Field(default=31_536_000, ge=0)


class AvatarSettings(FilebayBaseModel):
    """Options for the unauthenticated avatar upload route.

    Attributes:
        namespace: Namespace directory avatars are committed to.
        max_upload_mb: Maximum accepted avatar size in megabytes.
        rate_limit: Requests allowed per client within one window.
        rate_window_seconds: Length of the rate-limit window.
    """

    namespace: str = "avatars"
    max_upload_mb: int = Field(default=5, gt=0)
    rate_limit: int = Field(default=10, gt=0)
    rate_window_seconds: int = Field(default=60, gt=0)


class AuthSettings(FilebayBaseModel):
    """Token verification settings.

    Attributes:
        enabled: Whether protected routes require a bearer token.
        secret_key: HMAC key used to sign and verify tokens.
        issuer: Expected ``iss`` claim.
        algorithm: JWT signing algorithm.
        token_ttl_days: Lifetime of issued tokens.
    """

    enabled: bool = True
    secret_key: str = "change-me-in-production"
    issuer: str = "filebay"
    algorithm: str = "HS256"
    token_ttl_days: int = Field(default=7, gt=0)


class ServerSettings(FilebayBaseModel):
    """HTTP server options."""

    host: str = "127.0.0.1"
    port: int = 3000
    public_base_url: str = "http://localhost:3000"
    cors_origins: List[str] = Field(default_factory=list)


class LoggingSettings(FilebayBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        directory: Optional directory for rotated log files.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
        console: Whether to log to the console.
    """

    level: str = "INFO"
    directory: Optional[Path] = None
    max_size_mb: int = 20
    backup_count: int = 14
    console: bool = True


class FilebayConfig(FilebayBaseModel):
    """Top-level configuration struct for Filebay."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    naming: NamingOptions = Field(default_factory=NamingOptions)
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    serving: ServingSettings = Field(default_factory=ServingSettings)
    avatars: AvatarSettings = Field(default_factory=AvatarSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "FilebayBaseModel",
    "StorageSettings",
    "OrganizationOptions",
    "NamingOptions",
    "ClassificationSettings",
    "ServingSettings",
    "AvatarSettings",
    "AuthSettings",
    "ServerSettings",
    "LoggingSettings",
    "FilebayConfig",
]
