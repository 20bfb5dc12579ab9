"""
Structured logging: one JSON object per event with level, timestamp and context.

Every module logs through get_logger(__name__) with a snake_case event name
and keyword context, e.g. logger.info("stakes_aggregation_done", accounts=3).
The event name is emitted as 'event_type'. Context keys that look like
credentials (api keys, tokens, Authorization headers) are redacted before
rendering, so upstream errors can be logged as-is.

LOG_LEVEL (default INFO) and LOG_FORMAT ("json" or "console") are read when
logging is first configured. No backend_staking imports here.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

import structlog

_SECRET_KEYS = ("apikey", "api_key", "authorization", "token", "secret")
REDACTED = "***"


def _iso_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' becomes 'event_type'."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in list(event_dict):
        lowered = key.lower()
        if any(marker in lowered for marker in _SECRET_KEYS) and event_dict[key] not in ("", None):
            # already masked values ("abc123...", "NOT FOUND") are kept
            value = str(event_dict[key])
            if not value.endswith("...") and value != "NOT FOUND":
                event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None, stream: TextIO | None = None) -> None:
    """
    (Re)configure structlog. Defaults come from LOG_LEVEL and LOG_FORMAT; output
    goes to stream, or to the current sys.stdout when None.
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").strip().lower()

    renderer: Any
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            _iso_timestamp,
            _event_type,
            _redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for a module; every event carries logger=<name>."""
    return structlog.get_logger(name).bind(logger=name)


def bind_request(method: str, path: str) -> structlog.BoundLogger:
    """Logger with the HTTP method and path bound, for per-request events."""
    return get_logger("backend_staking.http").bind(method=method, path=path)
