"""Structured logging configuration using structlog.

Module loggers are plain ``logging.getLogger(__name__)`` loggers. Their
records are rendered by a :class:`structlog.stdlib.ProcessorFormatter`, so
they pick up the request context (``tracking_id``, ``base``) bound by the
pipeline through ``structlog.contextvars``.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from ess.config.settings import ObservabilitySettings

NO_TRACKING_ID = "-"


def add_tracking_id(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Make sure every event carries a ``tracking_id`` key.

    Events logged outside a request (startup, shutdown) get ``"-"``.
    """
    event_dict.setdefault("tracking_id", NO_TRACKING_ID)
    return event_dict


def setup_logging(settings: ObservabilitySettings | None = None) -> None:
    """Configure structured logging for ESS.

    Safe to call more than once; the handler installed by a previous call is
    replaced.

    Args:
        settings: Observability settings. Uses defaults if None.
    """
    log_level = getattr(settings, "log_level", "info").upper() if settings else "INFO"
    log_format = getattr(settings, "log_format", "json") if settings else "json"

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        add_tracking_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "console":
        renderers: list = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level, logging.INFO))
