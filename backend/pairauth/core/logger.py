"""JSON log lines on stdout, correlated by a per-request id.

The id comes from ``X-Request-ID`` (or ``X-Correlation-ID``) when the client
sends one, otherwise it is generated. It is stored on :data:`flask.g`, stamped
on every log record and echoed back in the ``X-Request-ID`` response header.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# ``extra=`` attributes copied into the JSON payload when present
EXTRA_KEYS = ("endpoint", "elapsed_ms", "user_id", "token_id", "email", "ip", "count")


class JSONFormatter(logging.Formatter):
    """Render a log record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on records; ``None`` outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def _incoming_request_id() -> str:
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value
    return str(uuid4())


def ensure_request_id() -> str:
    """Return the id of the current request; a fresh one outside requests."""

    if not has_request_context():
        return str(uuid4())
    if "request_id" not in g:
        g.request_id = _incoming_request_id()
    return g.request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Send every record through one JSON stdout handler on the root logger."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Assign a request id before each request and echo it on the response."""

    @app.before_request
    def _assign_request_id() -> None:
        # ``g`` belongs to the app context, which may span several requests.
        g.request_id = _incoming_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "REQUEST_ID_HEADER",
    "configure_logging",
    "ensure_request_id",
    "init_app",
]
