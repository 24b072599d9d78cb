"""
Structured logging configuration using structlog wrapping stdlib.

Console output in development, JSON in production. Calendar contents are
private: any event field that could carry a meeting subject, body or
attendee list is masked before rendering.

Usage:
    from salesdesk.logging_config import get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)
    logger.info("slots_found", day="2026-10-20", count=4)
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from typing import Any

import structlog


# Keys that may hold calendar contents from the provider
PRIVATE_KEYS = frozenset({"subject", "body", "attendees", "organizer", "bodyPreview"})

REDACTED = "[private]"


def redact_calendar_fields(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask calendar event contents so they never reach a log sink."""
    for key in PRIVATE_KEYS & event_dict.keys():
        event_dict[key] = REDACTED
    return event_dict


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    if level is None:
        level = os.environ.get("SALESDESK_LOG_LEVEL", "INFO")

    if json_output is None:
        json_output = os.environ.get("SALESDESK_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_calendar_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # httpx logs every request URL at INFO, including organizer addresses
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


def bind_scheduling_context(**values: Any) -> str:
    """
    Bind per-request context (request id, organizer) for the current task.

    Returns:
        The request id bound to the context
    """
    request_id = values.pop("request_id", None) or uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(request_id=request_id, **values)
    return request_id


def clear_scheduling_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = [
    "bind_scheduling_context",
    "clear_scheduling_context",
    "get_logger",
    "redact_calendar_fields",
    "setup_logging",
]
