"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env in development (no-op when missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    SECRET_KEY: str
        Flask secret. Defaults to a development-safe placeholder and should be
        overridden in production.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    ACCESS_TOKEN_TTL_MINUTES: int
        Lifetime of AUTH tokens (``15`` minutes).
    REFRESH_TOKEN_TTL_DAYS: int
        Lifetime of REFRESH tokens (``30`` days).
    TOKEN_REFRESH_ENDPOINT: str
        Flask endpoint name of the rotation route. Only REFRESH tokens
        authenticate there, and only AUTH tokens authenticate elsewhere.
    EXPOSE_ERROR_DETAILS: bool
        Attach exception class/message to ``UNEXPECTED_ERROR`` responses.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter expression applied to the login route.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Token lifecycle
    ACCESS_TOKEN_TTL_MINUTES = env_int("ACCESS_TOKEN_TTL_MINUTES", 15)
    REFRESH_TOKEN_TTL_DAYS = env_int("REFRESH_TOKEN_TTL_DAYS", 30)
    TOKEN_REFRESH_ENDPOINT = os.getenv("TOKEN_REFRESH_ENDPOINT", "auth.refresh")

    # Errors
    PROPAGATE_EXCEPTIONS = False
    EXPOSE_ERROR_DETAILS = env_bool("EXPOSE_ERROR_DETAILS", False)

    # Rate limiting
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode and exposes unexpected error details by default.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    EXPOSE_ERROR_DETAILS = env_bool("EXPOSE_ERROR_DETAILS", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Disables rate limiting so repeated logins do not trip the limiter.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    RATELIMIT_ENABLED = False
    EXPOSE_ERROR_DETAILS = True
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Unexpected errors never leak exception details to clients.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    EXPOSE_ERROR_DETAILS = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
