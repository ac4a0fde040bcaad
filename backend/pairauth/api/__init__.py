"""HTTP API: blueprints mounted under ``/api/<version>``."""

from __future__ import annotations

from flask import Flask

API_ROOT = "/api"


def init_app(app: Flask) -> None:
    """Register the v1 blueprints, e.g. ``auth`` under ``/api/v1/auth``."""

    from pairauth.api.v1 import API_VERSION, REGISTRY

    for bp, rel_prefix in REGISTRY:
        app.register_blueprint(bp, url_prefix=f"{API_ROOT}/{API_VERSION}{rel_prefix}")


__all__ = ["API_ROOT", "init_app"]
