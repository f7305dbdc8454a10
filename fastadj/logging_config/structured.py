"""Structured logging configuration using structlog."""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import Processor

from fastadj.config import SearchSettings, get_settings


def add_library_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag entries with the library name, version and environment."""
    settings = get_settings()
    event_dict.setdefault("library", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def _resolve_level(settings: SearchSettings) -> int:
    if settings.verbose:
        return logging.DEBUG
    return getattr(logging, settings.log_level.upper(), logging.INFO)


def setup_logging(settings: SearchSettings | None = None) -> None:
    """Configure structlog and the standard logging bridge.

    ``verbose`` forces DEBUG so per-depth progress and edge removals show up.
    """
    settings = settings or get_settings()
    level = _resolve_level(settings)

    if settings.is_production:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            add_library_context,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("concurrent.futures").setLevel(logging.WARNING)


@contextmanager
def search_context(**fields: Any) -> Iterator[str]:
    """Bind a fresh ``search_id`` plus ``fields`` to every entry logged inside.

    Worker threads see the binding when their work is submitted with a copy
    of the caller's context (see ``ForkJoinScheduler``).
    """
    search_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(search_id=search_id, **fields):
        yield search_id


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
