"""
Structured logging for the classifier, analytics dispatcher and CLI.

Every record carries event_type (the snake_case first argument), level, logger
name and a UTC ISO timestamp, plus whatever context the call site passes
(signature, protocol, query_type, counts). Output goes to stderr so the CLI's
stdout stays a clean JSON document.

LOG_LEVEL picks the threshold (default INFO); LOG_FORMAT=json (default) renders
one JSON object per line, anything else uses structlog's console renderer.

This module must not import other backend_shield modules; they all import it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"


def _level_from_env() -> str:
    return os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()


def _format_from_env() -> str:
    return os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT).strip().lower()


def _rename_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's 'event' key becomes event_type; message mirrors it unless given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def configure_structlog(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    (Re)configure structlog for the process.

    Arguments default to LOG_LEVEL / LOG_FORMAT and sys.stderr. Loggers already
    returned by get_logger keep the configuration they were created under.
    """
    level_name = (level or _level_from_env()).upper()
    level_value = getattr(logging, level_name, logging.INFO)
    fmt = (fmt or _format_from_env()).lower()
    out = stream if stream is not None else sys.stderr

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _rename_event,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=out.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger with the module name bound as `logger`.

        logger = get_logger(__name__)
        logger.info("classify_batch_done", received=120, matched=37, protocol_filter="JUPITER")

    JSON output: {"received": 120, "matched": 37, "protocol_filter": "JUPITER",
    "logger": "...", "level": "info", "timestamp": "...", "event_type": "classify_batch_done", ...}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_query(query_type: str) -> structlog.BoundLogger:
    """Logger for one dispatched query; query_type is attached to every event."""
    return get_logger("backend_shield.query").bind(query_type=query_type)
