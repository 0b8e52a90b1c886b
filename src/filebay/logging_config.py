"""Logging setup for the Filebay server and CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from filebay.config.models import LoggingSettings

APP_LOGGER = "filebay"
HTTP_LOGGER = "filebay.http"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

APPLICATION_LOG = "application.log"
ERROR_LOG = "error.log"
HTTP_LOG = "http.log"

_MANAGED_ATTR = "_filebay_managed"


def setup_logging(
    settings: LoggingSettings | None = None,
    *,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the ``filebay`` logger hierarchy.

    Calling this more than once replaces the handlers installed by the previous call, so
    the CLI and the application factory can both call it safely.

    Args:
        settings: Logging configuration; defaults to :class:`LoggingSettings`.
        console: Rich console used for terminal output.

    Returns:
        logging.Logger: The configured ``filebay`` logger.
    """
    settings = settings or LoggingSettings()
    level = _parse_level(settings.level)

    app_logger = logging.getLogger(APP_LOGGER)
    http_logger = logging.getLogger(HTTP_LOGGER)
    for logger in (app_logger, http_logger):
        _remove_managed_handlers(logger)
    app_logger.setLevel(level)
    http_logger.setLevel(logging.INFO)

    if settings.console:
        handler = RichHandler(
            console=console,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setLevel(level)
        _install(app_logger, handler)

    if settings.directory is not None:
        directory = Path(settings.directory).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        max_bytes = settings.max_size_mb * 1024 * 1024

        _install(
            app_logger,
            _rotating(directory / APPLICATION_LOG, max_bytes, settings.backup_count, level),
        )
        _install(
            app_logger,
            _rotating(directory / ERROR_LOG, max_bytes, settings.backup_count, logging.ERROR),
        )
        # Access lines go to their own file and stay out of the application log.
        http_logger.propagate = False
        _install(
            http_logger,
            _rotating(directory / HTTP_LOG, max_bytes, settings.backup_count, logging.INFO),
        )
    else:
        http_logger.propagate = True

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return app_logger


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    if isinstance(level, int):
        return level
    return logging.INFO


def _rotating(path: Path, max_bytes: int, backup_count: int, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _install(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _MANAGED_ATTR, True)
    logger.addHandler(handler)


def _remove_managed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _MANAGED_ATTR, False):
            logger.removeHandler(handler)
            handler.close()


__all__ = ["APP_LOGGER", "HTTP_LOGGER", "setup_logging"]
