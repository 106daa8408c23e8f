"""Structured logging setup.

Console output while developing locally, one JSON object per line anywhere
else. Request-scoped values (``request_id``) are merged in from contextvars.
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from app.utils.config import Settings, settings as default_settings


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or default_settings
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    log_format = settings.log_format or ("console" if settings.is_local else "json")
    if log_format == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=False)
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Third-party libraries (uvicorn, pymongo) keep using stdlib logging.
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    return structlog.get_logger(name or "auth", **initial_values)


def bind_request_id(request_id: str) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = ["configure_logging", "get_logger", "bind_request_id", "clear_context"]
