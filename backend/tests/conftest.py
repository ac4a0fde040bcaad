"""Pytest fixtures configuring an isolated database layer.

Each test gets freshly created tables in an in-memory SQLite database that
lives for the duration of the test, so data never leaks between cases and
application code can commit freely through its units of work.
"""

from __future__ import annotations

import os

import pytest
from pairauth.core.config import TestingConfig
from pairauth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from pairauth.core.responses import get_formatter
from pairauth.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Rate limiting is off; individual tests re-enable it when needed.
    - Unexpected errors expose their exception details.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False
    EXPOSE_ERROR_DETAILS = True


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture()
def db(app):
    """Create every table inside a pushed app context, drop them afterwards.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        try:
            yield _db
        finally:
            _db.session.remove()
            _db.drop_all()


@pytest.fixture()
def session(db):
    """Return the Flask-scoped session the application code also uses."""
    return db.session


@pytest.fixture()
def client(app, db):
    """Flask test client sharing the app context pushed by ``db``."""
    return app.test_client()


@pytest.fixture()
def formatter(app, db):
    """Application-wide envelope formatter with an empty key cache."""
    fmt = get_formatter()
    fmt.key_cache.clear()
    return fmt


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when a test uses the database."""
    from tests.factories import SQLAlchemySession

    if "session" in request.fixturenames or "db" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
