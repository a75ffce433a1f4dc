"""Fixtures shared by every kustomap test."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any setup_logging() call so loggers never write to a closed stream."""
    yield
    structlog.reset_defaults()
