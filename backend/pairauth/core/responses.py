"""Flask glue for :mod:`pairauth.core.envelope`."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from flask import Flask, Response, current_app, jsonify

from pairauth.core.envelope import Envelope, EnvelopeFormatter, KeyCache

EXTENSION_KEY = "envelope"


def init_app(app: Flask, *, key_cache: KeyCache | None = None) -> EnvelopeFormatter:
    """Create the application-wide formatter and its key cache."""

    formatter = EnvelopeFormatter(key_cache=key_cache or KeyCache())
    app.extensions[EXTENSION_KEY] = formatter
    return formatter


def get_formatter() -> EnvelopeFormatter:
    """Return the formatter bound to the current application."""

    return cast(EnvelopeFormatter, current_app.extensions[EXTENSION_KEY])


def envelope_response(envelope: Envelope) -> Response:
    """Render an :class:`Envelope` as a JSON response."""

    response = jsonify(envelope.body)
    response.status_code = envelope.status
    return response


def success_response(
    data: Any = None,
    *,
    meta: Mapping[str, Any] | None = None,
    status: int = 200,
) -> Response:
    """Shortcut for ``envelope_response(get_formatter().wrap_success(...))``."""

    return envelope_response(get_formatter().wrap_success(data, meta=meta, status=status))


def error_response(
    message: str,
    code: str = "ERROR",
    status: int = 500,
    details: Mapping[str, Any] | None = None,
) -> Response:
    """Shortcut for ``envelope_response(get_formatter().wrap_error(...))``."""

    return envelope_response(
        get_formatter().wrap_error(message, code=code, status=status, details=details)
    )


__all__ = [
    "envelope_response",
    "error_response",
    "get_formatter",
    "init_app",
    "success_response",
]
