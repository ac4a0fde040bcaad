"""Unit tests for TokenRecordRepository."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pairauth.models.base import utcnow
from pairauth.models.token import TokenRecord, TokenType
from pairauth.repositories.base import Pagination
from pairauth.repositories.token import TokenRecordRepository
from tests.factories.token import AuthTokenFactory, RefreshTokenFactory
from tests.factories.user import UserFactory
from tests.helpers.utils import token_count


class TestTokenRecordRepository:
    """Pair lookups and cascading deletes."""

    @pytest.fixture()
    def repo(self, session):
        return TokenRecordRepository(session=session)

    @pytest.fixture()
    def owner(self, session):
        return UserFactory()

    def _pair(self, owner, **auth_kwargs):
        auth = AuthTokenFactory(owner=owner, **auth_kwargs)
        refresh = RefreshTokenFactory(parent=auth)
        return auth, refresh

    def test_find_pair_from_either_half(self, repo, owner):
        auth, refresh = self._pair(owner)

        assert repo.find_pair(auth) == (auth, refresh)
        assert repo.find_pair(refresh) == (auth, refresh)
        assert repo.find_child(auth.id) == refresh

    @pytest.mark.parametrize("half", ["auth", "refresh"])
    def test_delete_pair_removes_both_halves(self, repo, session, owner, half):
        auth, refresh = self._pair(owner)
        other_auth, other_refresh = self._pair(owner)
        doomed_ids = (auth.id, refresh.id)

        removed = repo.delete_pair(auth if half == "auth" else refresh)
        session.commit()

        assert removed == 2
        assert all(repo.get(pk) is None for pk in doomed_ids)
        assert repo.get(other_auth.id) is not None
        assert repo.get(other_refresh.id) is not None

    def test_delete_pair_tolerates_missing_child(self, repo, session, owner):
        lonely = AuthTokenFactory(owner=owner)

        assert repo.delete_pair(lonely) == 1
        session.commit()
        assert token_count(session) == 0

    def test_delete_record_reports_rows_hit(self, repo, session, owner):
        _, refresh = self._pair(owner)

        assert repo.delete_record(refresh) == 1
        assert repo.delete_record(refresh) == 0
        session.commit()
        assert token_count(session) == 1

    def test_delete_record_ignores_replaced_digest(self, repo, session, owner):
        auth = AuthTokenFactory(owner=owner)
        stale = TokenRecord(id=auth.id, token_hash="0" * 64)

        assert repo.delete_record(stale) == 0
        session.commit()
        assert repo.get(auth.id) is not None

    def test_delete_for_owner_keeps_requested_pair(self, repo, session, owner):
        keep_auth, keep_refresh = self._pair(owner)
        self._pair(owner)
        self._pair(owner)
        stranger_auth, _ = self._pair(UserFactory())

        removed = repo.delete_for_owner(owner.id, keep_auth_id=keep_auth.id)
        session.commit()

        assert removed == 4
        assert token_count(session, user_id=owner.id) == 2
        assert repo.get(keep_auth.id) is not None
        assert repo.get(keep_refresh.id) is not None
        assert repo.get(stranger_auth.id) is not None

    def test_delete_for_owner_removes_everything(self, repo, session, owner):
        self._pair(owner)
        self._pair(owner)

        assert repo.delete_for_owner(owner.id) == 4
        session.commit()
        assert token_count(session, user_id=owner.id) == 0

    def test_paginate_auth_for_owner_newest_first(self, repo, owner):
        base = utcnow()
        oldest, _ = self._pair(owner, created_at=base - timedelta(hours=2))
        middle, _ = self._pair(owner, created_at=base - timedelta(hours=1))
        newest, _ = self._pair(owner, created_at=base)

        page = repo.paginate_auth_for_owner(
            owner.id, Pagination(page=1, per_page=2, sort=["-created_at"])
        )

        assert page.total == 3
        assert page.current_page == 1
        assert page.per_page == 2
        assert [r.id for r in page.data] == [newest.id, middle.id]
        assert all(r.type is TokenType.AUTH for r in page.data)

        second = repo.paginate_auth_for_owner(
            owner.id, Pagination(page=2, per_page=2, sort=["-created_at"])
        )
        assert [r.id for r in second.data] == [oldest.id]

    def test_list_expired_refresh(self, repo, session, owner):
        _, stale = self._pair(owner)
        stale.expires_at = utcnow() - timedelta(seconds=1)
        session.commit()
        self._pair(owner)
        AuthTokenFactory(owner=owner, expires_at=utcnow() - timedelta(days=1))

        expired = repo.list_expired_refresh(utcnow())

        assert [r.id for r in expired] == [stale.id]

    def test_unique_parent_rejects_second_refresh(self, repo, session, owner):
        from sqlalchemy.exc import IntegrityError

        auth, _ = self._pair(owner)
        with pytest.raises(IntegrityError):
            repo.add(
                TokenRecord.new_refresh(auth, token_hash="z" * 64, expires_at=None)
            )
        session.rollback()
