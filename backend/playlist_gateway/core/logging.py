"""
Structured logging configuration using structlog.
JSON lines in production, pretty console output for local work.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor


def add_app_context(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application-level context to every log entry."""
    event_dict["app"] = "playlist-gateway"
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog according to LOG_LEVEL and LOG_FORMAT.
    LOG_FORMAT=json renders one JSON object per line; anything else
    uses the coloured development console renderer.
    """
    from playlist_gateway.core.config import settings

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    json_output = settings.LOG_FORMAT.lower() == "json"
    if json_output:
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[*shared_processors, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # console loggers stay reconfigurable
        cache_logger_on_first_use=json_output,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # uvicorn logs every request itself; the audit middleware covers that
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
