"""Tiny helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager

from pairauth.models.token import TokenRecord
from sqlalchemy import func, select


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised."""
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


def bearer(token: str) -> dict[str, str]:
    """Return an ``Authorization`` header carrying ``token``."""
    return {"Authorization": f"Bearer {token}"}


def token_count(session, **filters) -> int:
    """Count token records, optionally filtered by equality on columns."""
    stmt = select(func.count()).select_from(TokenRecord)
    for name, value in filters.items():
        stmt = stmt.where(getattr(TokenRecord, name) == value)
    return int(session.execute(stmt).scalar_one())
