"""FastAPI application factory."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from filebay.auth import TokenService
from filebay.config.models import FilebayConfig
from filebay.errors import (
    AuthenticationError,
    FilebayError,
    InternalIOError,
    RateLimitExceeded,
    ValidationError,
)
from filebay.logging_config import HTTP_LOGGER
from filebay.services import StorageServices, build_services

from .ratelimit import SlidingWindowRateLimiter
from .routes import files_router, router

LOGGER = logging.getLogger(__name__)
ACCESS_LOGGER = logging.getLogger(HTTP_LOGGER)


def create_app(
    config: Optional[FilebayConfig] = None,
    *,
    services: Optional[StorageServices] = None,
    tokens: Optional[TokenService] = None,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        config: Configuration to build the storage services from.
        services: Pre-built storage services; takes precedence over ``config``.
        tokens: Token service used to verify bearer tokens.

    Returns:
        FastAPI: Application with routes, middleware, and error handlers installed.
    """
    if services is None:
        services = build_services(config or FilebayConfig())
    config = services.config

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        services.prepare()
        LOGGER.info("Filebay is serving %s", services.root)
        yield
        LOGGER.info("Filebay shut down.")

    app = FastAPI(title="Filebay", lifespan=lifespan)
    app.state.services = services
    app.state.tokens = tokens or TokenService.from_settings(config.auth)
    app.state.avatar_limiter = SlidingWindowRateLimiter(
        config.avatars.rate_limit, config.avatars.rate_window_seconds
    )

    if config.server.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - started) * 1000
            ACCESS_LOGGER.error("%s %s 500 %.1fms", request.method, request.url.path, elapsed)
            raise
        elapsed = (time.perf_counter() - started) * 1000
        ACCESS_LOGGER.info(
            "%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed
        )
        return response

    @app.exception_handler(FilebayError)
    async def filebay_error_handler(request: Request, exc: FilebayError) -> JSONResponse:
        if isinstance(exc, InternalIOError):
            LOGGER.error(
                "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
            )
        else:
            LOGGER.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        headers = {}
        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        elif isinstance(exc, RateLimitExceeded):
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_payload(), headers=headers or None
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
        error = ValidationError("The request is malformed.", details={"fields": fields})
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.error(
            "Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "internal_error", "message": "Internal server error."}},
        )

    app.include_router(router)
    # The catch-all file route must stay last.
    app.include_router(files_router)
    return app


__all__ = ["create_app"]
