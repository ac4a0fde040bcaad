"""Unit tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pairauth.core.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_int,
    get_config,
)


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("yes", True), ("On", True), ("0", False), ("nope", False)],
)
def test_env_bool(monkeypatch, value, expected):
    monkeypatch.setenv("PAIRAUTH_FLAG", value)
    assert env_bool("PAIRAUTH_FLAG") is expected


def test_env_bool_default(monkeypatch):
    monkeypatch.delenv("PAIRAUTH_FLAG", raising=False)
    assert env_bool("PAIRAUTH_FLAG", True) is True


def test_env_int(monkeypatch):
    monkeypatch.setenv("PAIRAUTH_TTL", "42")
    assert env_int("PAIRAUTH_TTL", 1) == 42
    monkeypatch.setenv("PAIRAUTH_TTL", " ")
    assert env_int("PAIRAUTH_TTL", 1) == 1


@pytest.mark.parametrize(
    "name, expected",
    [
        ("production", ProductionConfig),
        ("testing", TestingConfig),
        ("development", DevelopmentConfig),
        ("unknown", DevelopmentConfig),
    ],
)
def test_get_config(monkeypatch, name, expected):
    monkeypatch.setenv("APP_ENV", name)
    assert get_config() is expected


def test_token_lifecycle_settings():
    assert TestingConfig.ACCESS_TOKEN_TTL_MINUTES > 0
    assert TestingConfig.REFRESH_TOKEN_TTL_DAYS > 0
    assert TestingConfig.RATELIMIT_ENABLED is False
    assert ProductionConfig.EXPOSE_ERROR_DETAILS is False
    assert DevelopmentConfig.TOKEN_REFRESH_ENDPOINT
