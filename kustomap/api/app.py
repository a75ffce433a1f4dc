"""FastAPI application factory for kustomap.

Usage::

    from kustomap.api.app import create_app

    app = create_app(scanner=scanner, config=config)

The factory is used by the production bootstrap (``kustomap.app``), by
``kustomap serve`` and by unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kustomap.api.routes import router
from kustomap.api.schemas import ErrorResponse
from kustomap.errors import (
    BranchNotFound,
    InvalidSourceUrl,
    NoManifestsFound,
    ProviderRequestError,
    RateLimitExceeded,
    TransientProviderError,
)

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def _error(status_code: int, code: str, detail: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=code, detail=detail).model_dump(),
        headers=headers,
    )


def _retry_after(reset_at: datetime | None) -> dict[str, str] | None:
    if reset_at is None:
        return None
    seconds = max(0, int((reset_at - datetime.now(UTC)).total_seconds()))
    return {"Retry-After": str(seconds)}


def create_app(scanner: Any, config: Any = None) -> FastAPI:
    """Create and configure the kustomap FastAPI application.

    Args:
        scanner: KustomizationScanner instance shared by every request, so
                 its content cache is reused across scans.
        config:  KustomapConfig, kept on ``app.state`` for handlers.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kustomap import __version__

    app = FastAPI(
        title="kustomap",
        summary="Kustomization dependency graph API",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.scanner = scanner
    app.state.config = config

    app.include_router(router, prefix=_API_PREFIX)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else "Invalid request"
        return _error(400, "INVALID_REQUEST", first_msg)

    @app.exception_handler(InvalidSourceUrl)
    async def invalid_source_handler(_request: Request, exc: InvalidSourceUrl) -> JSONResponse:
        return _error(400, "INVALID_SOURCE_URL", str(exc))

    @app.exception_handler(NoManifestsFound)
    async def no_manifests_handler(_request: Request, exc: NoManifestsFound) -> JSONResponse:
        return _error(404, "NO_MANIFESTS_FOUND", str(exc))

    @app.exception_handler(BranchNotFound)
    async def branch_not_found_handler(_request: Request, exc: BranchNotFound) -> JSONResponse:
        return _error(404, "BRANCH_NOT_FOUND", str(exc))

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
        _log.warning("rate_limit_exceeded", provider=exc.provider)
        return _error(429, "RATE_LIMIT_EXCEEDED", str(exc), headers=_retry_after(exc.reset_at))

    @app.exception_handler(ProviderRequestError)
    async def provider_request_handler(_request: Request, exc: ProviderRequestError) -> JSONResponse:
        return _error(502, "PROVIDER_ERROR", str(exc))

    @app.exception_handler(TransientProviderError)
    async def transient_provider_handler(_request: Request, exc: TransientProviderError) -> JSONResponse:
        return _error(502, "PROVIDER_ERROR", str(exc))

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred.")

    return app
