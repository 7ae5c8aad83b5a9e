"""Structured logging utilities for the Grok client.

Request events are written as JSON Lines to ``requests.jsonl`` through a
dedicated, non-propagating logger so they never mix with application logs.

Log File Configuration:
    - Location: ``$GROK_LOG_DIR/requests.jsonl``, or ``./logs/requests.jsonl``
      when the variable is unset
    - Format: JSON Lines (one JSON object per line)
    - Encoding: UTF-8
    - The directory and file handler are created on the first event

Event Schema:
    All events should include:
        - event: Event type identifier (``"grok_request"``)
        - timestamp: ISO 8601 timestamp (auto-injected if missing)
        - operation, status, model, request_id, latency_ms and, on
          failure, error_type, error_message and http_status
"""

from __future__ import annotations

import functools
import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

REQUEST_LOGGER_NAME = "grok.requests"


@functools.cache
def _get_logs_dir() -> Path:
    """Resolve the log directory and create it if needed."""
    logs_dir = Path(os.getenv("GROK_LOG_DIR") or Path.cwd() / "logs")
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


@functools.cache
def get_request_logger() -> logging.Logger:
    """Return the JSONL request logger, attaching its file handler once."""
    request_logger = logging.getLogger(REQUEST_LOGGER_NAME)
    if not any(isinstance(h, logging.FileHandler) for h in request_logger.handlers):
        request_logger.setLevel(logging.INFO)
        handler = logging.FileHandler(_get_logs_dir() / "requests.jsonl", encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        request_logger.addHandler(handler)
        request_logger.propagate = False
    return request_logger


def _json_default(value: Any) -> Any:
    """Fallback serializer for datetime and Path objects."""
    match value:
        case datetime():
            return TypeAdapter(datetime).dump_python(value, mode="json")
        case Path():
            return str(value)
        case _:
            return str(value)


def log_request_event(event: dict[str, Any]) -> None:
    """Emit a structured request event.

    Injects ``timestamp`` if missing (mutates ``event``) and writes one JSON
    line to the request log.

    Example:
        >>> log_request_event({
        ...     "event": "grok_request",
        ...     "operation": "chat",
        ...     "status": "success",
        ...     "model": "grok-2-1212",
        ...     "latency_ms": 1234.56
        ... })
    """
    event.setdefault("timestamp", datetime.now(UTC).isoformat())
    get_request_logger().info(json.dumps(event, default=_json_default))


__all__ = ["REQUEST_LOGGER_NAME", "get_request_logger", "log_request_event"]
