"""Request and response schemas for the REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ScanRequest(BaseModel):
    """Body of ``POST /api/v1/scan``."""

    url: str = Field(..., min_length=1, max_length=2048, description="GitHub or GitLab tree URL")

    @field_validator("url")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url must not be blank")
        return value


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    cache_entries: int = 0


class ScanResponse(BaseModel):
    """Serialized :class:`kustomap.models.scan.ScanResult`."""

    graph: dict[str, Any]
    cycles: list[list[str]]
    warnings: list[str]
    skipped: list[dict[str, str]]
    source: dict[str, Any] | None = None
    possibly_incomplete: bool = False


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    error: str
    detail: str
