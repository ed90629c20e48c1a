"""
Structured logging configuration using structlog.

Engine components log snake_case events through ``structlog.get_logger()``;
applications embedding calcgraph call ``configure_logging()`` once at
start-up to choose how those events are rendered.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from calcgraph import __version__
from calcgraph.config import Settings, get_settings


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add severity level for structured logging."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def add_engine_version(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp each event with the calcgraph release that produced it."""
    event_dict.setdefault("calcgraph_version", __version__)
    return event_dict


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for calcgraph events.

    JSON lines outside dev mode when ``log_format`` is ``json``; colored
    console output otherwise.

    Args:
        settings: Settings to read level and format from (defaults to
            ``get_settings()``)
    """
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_severity,
            add_engine_version,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
