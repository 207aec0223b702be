"""Structured logging configuration for the to-do list service.

Uses structlog so store and controller events carry key/value context
(task ids, delays, counts) in both console and JSON output.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, List, MutableMapping, Optional

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from .settings import Settings

SERVICE_NAME = "todo_list"


class ServiceContext:
    """Processor stamping every event with the service name and its storage backend."""

    def __init__(self, backend: str) -> None:
        self.backend = backend

    def __call__(self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("backend", self.backend)
        return event_dict


def configure_logging(settings: "Optional[Settings]" = None) -> None:
    """Configure structured logging based on settings.

    Args:
        settings: Application settings. If None, uses defaults.
    """
    log_level = logging.INFO
    log_format = "console"
    backend = "unknown"

    if settings is not None:
        log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
        log_format = settings.log_format
        backend = settings.persistence_backend

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        ServiceContext(backend),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors: List[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Standard library logging for uvicorn/starlette
    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name) if name else structlog.get_logger()
