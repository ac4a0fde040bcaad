"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest
from pairauth.models import TokenRecord, User
from pairauth.uow import SQLAlchemyUnitOfWork
from tests.factories.user import UserFactory
from tests.helpers.utils import token_count


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, db, session):
        """
        GIVEN a writer UoW
        WHEN we create a user via repo inside the context and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = session.query(User).count()

        with SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())

        session.rollback()  # a later rollback cannot undo a committed scope
        assert session.query(User).count() == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised after both halves of a pair were flushed
        THEN neither row survives.
        """
        owner = UserFactory()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            auth = uow.tokens.add(
                TokenRecord.new_auth(user_id=owner.id, token_hash="a" * 64, abilities=["*"], expires_at=None)
            )
            uow.tokens.add(TokenRecord.new_refresh(auth, token_hash="b" * 64, expires_at=None))
            raise RuntimeError("boom")

        assert token_count(session) == 0

    def test_repositories_share_the_unit_session(self, db):
        uow = SQLAlchemyUnitOfWork()
        assert uow.users.session is uow.session
        assert uow.tokens.session is uow.session
