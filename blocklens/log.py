"""Structured logging setup.

Library modules call `get_logger(__name__)`; entry points (CLI, web API)
call `setup_logging()` once. Until then events go through stdlib logging,
which only emits WARNING and above, to stderr.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog


def _processors(renderer) -> list:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        renderer,
    ]


def configure_defaults() -> None:
    """Route events through stdlib logging without touching its handlers."""
    structlog.configure(
        processors=_processors(structlog.dev.ConsoleRenderer(colors=False)),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=False,
    )


def setup_logging(log_level: str = "WARNING", *, json: bool = False) -> None:
    """Configure structlog on top of stdlib logging.

    Logs go to stderr so that JSON/Markdown output on stdout stays clean.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=_processors(renderer),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    # uvicorn access logs are noisy at INFO.
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


if not structlog.is_configured():
    configure_defaults()
