"""REST API layer for kustomap.

Exposes:
    create_app -- FastAPI application factory.
    build_app  -- Alias for create_app (used by kustomap.app bootstrap).
"""

from kustomap.api.app import create_app

build_app = create_app

__all__ = ["build_app", "create_app"]
