"""
Structured logging: timestamp, level, event_type, plus source/decision fields.

structlog with ISO timestamps and consistent keys for aggregation. Engine
modules call get_logger(__name__) and log snake_case event names with keyword
fields (source=..., score=..., action=...). Raw message text is never written
out in full: a `text` field is reduced to its length and a short preview.

Only stdlib logging and structlog are imported here; no backend_modguard imports
to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# JSON output for production (LOG_FORMAT=json); human-readable for local
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

TEXT_PREVIEW_CHARS = 24


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _redact_text(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Replace a user-text field with its length and a truncated preview."""
    text = event_dict.pop("text", None)
    if isinstance(text, str):
        event_dict["text_length"] = len(text)
        preview = text[:TEXT_PREVIEW_CHARS]
        event_dict["text_preview"] = preview + ("..." if len(text) > TEXT_PREVIEW_CHARS else "")
    return event_dict


def configure_structlog(level: str | None = None, fmt: str | None = None) -> None:
    """
    Configure structlog: JSON or console renderer, level filter, event_type key.

    Runs once at import with LOG_LEVEL / LOG_FORMAT. Call again before engine
    modules are imported to apply values loaded later (main.py does so after
    reading .env); loggers bound earlier keep the old configuration.
    """
    level_value = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    fmt = (fmt or LOG_FORMAT).strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _redact_text,
        _add_timestamp,
        _normalize_event,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("consensus_decided", final_score=4.0, action="delete")

    Output (JSON): {"event_type": "consensus_decided", "final_score": 4.0,
    "action": "delete", "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_source(source: str) -> structlog.BoundLogger:
    """Return a logger with the scoring source name bound to all subsequent calls."""
    return get_logger("backend_modguard.sources").bind(source=source)
