"""CORS and proxy configuration helpers for the API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from pairauth.core.logger import REQUEST_ID_HEADER


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints and trust one proxy hop.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. When ``CORS_ORIGINS`` is blank or ``"*"`` the policy allows
        any origin but disables credential support. Bearer tokens travel in
        the ``Authorization`` header, so it is always allowed.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )

    # Client IPs feed the login rate limiter and the invalid-login log line.
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
