"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from pairauth.core.config import BaseConfig, get_config
from pairauth.core.envelope import KeyCache
from pairauth.core.logger import configure_logging
from pairauth.core.logger import init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    key_cache: KeyCache | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object or import path; inferred from ``APP_ENV``
        when omitted.
    :param key_cache: Key rewrite cache for the response envelope. A fresh
        one is created when omitted.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    # Envelope members keep their documented order on the wire.
    app.json.sort_keys = False

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from pairauth.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from pairauth.core import cors

    cors.init_app(app)

    from pairauth.core import responses

    responses.init_app(app, key_cache=key_cache)

    from pairauth.api import init_app as init_api

    init_api(app)

    from pairauth.core import errors

    errors.init_app(app)

    from pairauth import cli as app_cli

    app_cli.init_app(app)

    return app
