"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.orm import Session, scoped_session

from pairauth.core.extensions import db
from pairauth.repositories import TokenRecordRepository, UserRepository
from pairauth.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.tokens = TokenRecordRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Every write of a use-case (e.g. deleting a pair and inserting its
    replacement) becomes visible in a single commit, or not at all.
    """

    def __init__(self, session: Session | None = None) -> None:
        super().__init__(session=session if session is not None else db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session begins lazily on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    Installs an ORM flush guard for the duration of the scope and always
    rolls back on exit. ``commit()`` is not allowed.
    """

    def __init__(self, session: Session | None = None) -> None:
        super().__init__(session=session if session is not None else db.session)
        self._guarded: Session | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # Listen on the concrete session: a scoped_session target would
        # register the guard for every session of the factory.
        target = self.session() if isinstance(self.session, scoped_session) else self.session
        event.listen(target, "before_flush", _block_flush)
        self._guarded = target
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            if self._guarded is not None:
                with suppress(Exception):
                    event.remove(self._guarded, "before_flush", _block_flush)
                self._guarded = None

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()


def _block_flush(session, flush_context, instances) -> None:
    if session.new or session.dirty or session.deleted:
        raise RuntimeError(
            "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
        )
