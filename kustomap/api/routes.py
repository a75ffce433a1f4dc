"""Route handlers for the ``/api/v1`` prefix."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request

from kustomap.api.schemas import HealthResponse, ScanRequest, ScanResponse

_log = structlog.get_logger(component="api.routes")

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from kustomap import __version__

    scanner = request.app.state.scanner
    return HealthResponse(version=__version__, cache_entries=len(scanner.resolver.cache))


@router.post("/scan", response_model=ScanResponse)
async def scan(body: ScanRequest, request: Request) -> ScanResponse:
    """Scan a remote repository and return its dependency graph.

    Whole-scan failures are raised and mapped to the error envelope by the
    exception handlers registered in :func:`kustomap.api.app.create_app`.
    """
    scanner = request.app.state.scanner
    _log.info("scan_requested", url=body.url)
    result = await scanner.scan_remote(body.url)
    return ScanResponse(**result.to_dict())
