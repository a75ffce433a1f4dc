"""Structured logging configuration using structlog.

The REST server logs JSON lines; the CLI switches to the console renderer so
scan warnings stay readable next to the command's own output. Both write to
stderr so ``kustomap scan --format json`` keeps stdout clean.
"""

from __future__ import annotations

import logging
import sys

import structlog

_RENDERERS = ("json", "console")


def setup_logging(level: str = "info", renderer: str = "json") -> None:
    """Configure structlog for the chosen renderer on stderr."""
    if renderer not in _RENDERERS:
        raise ValueError(f"Unknown log renderer: {renderer}. Must be one of {_RENDERERS}")
    log_level = getattr(logging, level.upper(), logging.INFO)

    final_processor: structlog.typing.Processor
    if renderer == "console":
        final_processor = structlog.dev.ConsoleRenderer(colors=False)
    else:
        final_processor = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            final_processor,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # the CLI may reconfigure within one process, so only the server caches
        cache_logger_on_first_use=renderer == "json",
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
