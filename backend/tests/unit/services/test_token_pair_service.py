"""Unit tests for TokenPairService: issue, rotate and revoke token pairs."""

from __future__ import annotations

from datetime import timedelta

import pytest
from freezegun import freeze_time
from pairauth.models.base import utcnow
from pairauth.models.token import REFRESH_TOKEN_ABILITY, TokenRecord, TokenType
from pairauth.repositories.token import TokenRecordRepository
from pairauth.services._shared.errors import InvalidTokenError, NotFoundError
from pairauth.services.tokens.dto import TokenLifetimes
from pairauth.services.tokens.plaintext import PlainTextToken, hash_secret
from pairauth.services.tokens.service import TokenPairService
from pairauth.services.tokens.verifier import CredentialVerifier
from tests.factories.user import UserFactory
from tests.helpers.utils import token_count


class TestTokenPairService:
    """Lifecycle of access/refresh pairs."""

    @pytest.fixture()
    def service(self, db) -> TokenPairService:
        return TokenPairService()

    @pytest.fixture()
    def repo(self, session) -> TokenRecordRepository:
        return TokenRecordRepository(session=session)

    @pytest.fixture()
    def user(self, session):
        return UserFactory()

    # ------------------------------ issue -------------------------------- #

    @freeze_time("2025-03-01 12:00:00")
    def test_issue_pair_shape(self, service, repo, user):
        pair = service.issue_pair(user.id)

        auth = repo.get(pair.access.record.id)
        refresh = repo.get(pair.refresh.record.id)
        now = utcnow()

        assert auth.type is TokenType.AUTH
        assert auth.abilities == ["*"]
        assert auth.expires_at == now + timedelta(minutes=15)
        assert auth.user_id == user.id

        assert refresh.type is TokenType.REFRESH
        assert refresh.parent_token_id == auth.id
        assert refresh.abilities == [REFRESH_TOKEN_ABILITY]
        assert refresh.expires_at == now + timedelta(days=30)
        assert refresh.user_id == user.id

    def test_plaintexts_reference_record_ids_and_are_not_stored(self, service, repo, user):
        pair = service.issue_pair(user.id)

        for issued in (pair.access, pair.refresh):
            parsed = PlainTextToken.parse(issued.plain_text)
            assert parsed is not None
            record = repo.get(parsed.token_id)
            assert record.id == issued.record.id
            assert record.token_hash == hash_secret(parsed.secret)
            assert record.token_hash != parsed.secret

    def test_issue_pair_keeps_requested_abilities_in_order(self, service, repo, user):
        pair = service.issue_pair(user.id, ["write", "read"])
        assert repo.get(pair.access.record.id).abilities == ["write", "read"]

    @pytest.mark.parametrize("abilities", [[], ["read", ""]])
    def test_issue_pair_rejects_bad_abilities_without_rows(self, service, session, user, abilities):
        with pytest.raises(ValueError):
            service.issue_pair(user.id, abilities)
        assert token_count(session) == 0

    def test_issue_pair_for_unknown_user(self, service, session):
        with pytest.raises(NotFoundError):
            service.issue_pair(12345)
        assert token_count(session) == 0

    def test_failure_mid_issue_leaves_no_rows(self, service, session, user, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("refresh insert failed")

        monkeypatch.setattr(TokenRecord, "new_refresh", classmethod(explode))

        with pytest.raises(RuntimeError):
            service.issue_pair(user.id)
        assert token_count(session) == 0

    def test_lifetimes_are_configurable(self, db, repo, user):
        service = TokenPairService(lifetimes=TokenLifetimes(access=None, refresh=timedelta(hours=1)))
        pair = service.issue_pair(user.id)

        assert repo.get(pair.access.record.id).expires_at is None
        assert repo.get(pair.refresh.record.id).expires_at is not None

    # ------------------------------ rotate ------------------------------- #

    def test_refresh_rotates_pair_exactly_once(self, service, repo, session, user):
        first = service.issue_pair(user.id)
        old_ids = (first.access.record.id, first.refresh.record.id)

        second = service.refresh_pair(first.refresh.plain_text)
        new_ids = (second.access.record.id, second.refresh.record.id)

        assert set(new_ids).isdisjoint(old_ids)
        assert all(repo.get(pk) is None for pk in old_ids)
        assert repo.get(second.access.record.id) is not None
        assert token_count(session) == 2
        assert second.access.plain_text != first.access.plain_text

        with pytest.raises(InvalidTokenError):
            service.refresh_pair(first.refresh.plain_text)

    def test_refresh_preserves_abilities_and_owner(self, service, repo, user):
        first = service.issue_pair(user.id, ["read"])

        second = service.refresh_pair(first.refresh.plain_text)
        auth = repo.get(second.access.record.id)

        assert auth.abilities == ["read"]
        assert auth.user_id == user.id

    def test_failed_rotation_keeps_original_pair(self, service, repo, session, user, monkeypatch):
        first = service.issue_pair(user.id, ["read"])

        def explode(*args, **kwargs):
            raise RuntimeError("refresh insert failed")

        with monkeypatch.context() as patched:
            patched.setattr(TokenRecord, "new_refresh", classmethod(explode))
            with pytest.raises(RuntimeError):
                service.refresh_pair(first.refresh.plain_text)

        assert token_count(session) == 2
        assert repo.get(first.access.record.id) is not None

        second = service.refresh_pair(first.refresh.plain_text)
        assert repo.get(second.access.record.id).abilities == ["read"]
        assert token_count(session) == 2

    def test_refresh_with_auth_token_fails(self, service, session, user):
        pair = service.issue_pair(user.id)

        with pytest.raises(InvalidTokenError):
            service.refresh_pair(pair.access.plain_text)
        assert token_count(session) == 2

    def test_refresh_with_expired_token_fails(self, service, session, user):
        pair = service.issue_pair(user.id)

        with freeze_time(utcnow() + timedelta(days=31)):
            with pytest.raises(InvalidTokenError):
                service.refresh_pair(pair.refresh.plain_text)
        assert token_count(session) == 2

    @pytest.mark.parametrize("plain", [None, "", "garbage", "1|wrong"])
    def test_refresh_with_unresolvable_token_fails(self, service, user, plain):
        service.issue_pair(user.id)
        with pytest.raises(InvalidTokenError):
            service.refresh_pair(plain)

    # ------------------------------ revoke ------------------------------- #

    @pytest.mark.parametrize("half", ["access", "refresh"])
    def test_revoke_pair_from_either_half(self, service, session, user, half):
        pair = service.issue_pair(user.id)
        survivor = service.issue_pair(user.id)

        service.revoke_pair(getattr(pair, half).plain_text)

        assert token_count(session) == 2
        assert token_count(session, id=survivor.access.record.id) == 1

    def test_revoke_pair_twice_fails_the_second_time(self, service, user):
        pair = service.issue_pair(user.id)
        service.revoke_pair(pair.access.plain_text)

        with pytest.raises(InvalidTokenError):
            service.revoke_pair(pair.access.plain_text)

    def test_revoke_pair_with_unknown_token(self, service, user):
        with pytest.raises(InvalidTokenError):
            service.revoke_pair("99|nope")

    def test_revoke_others_keeps_current_pair(self, service, session, user):
        service.issue_pair(user.id)
        b = service.issue_pair(user.id)
        service.issue_pair(user.id)
        stranger = service.issue_pair(UserFactory().id)
        keep_ids = {b.access.record.id, b.refresh.record.id}

        removed = service.revoke_others(b.access.plain_text)

        assert removed == 4
        assert token_count(session, user_id=user.id) == 2
        ids = {r.id for r in session.query(TokenRecord).filter_by(user_id=user.id)}
        assert ids == keep_ids
        assert token_count(session, user_id=stranger.access.record.user_id) == 2

    def test_revoke_others_accepts_refresh_half(self, service, session, user):
        service.issue_pair(user.id)
        current = service.issue_pair(user.id)

        assert service.revoke_others(current.refresh.plain_text) == 2
        assert token_count(session, user_id=user.id) == 2

    def test_revoke_all(self, service, session, user):
        for _ in range(3):
            service.issue_pair(user.id)
        other = UserFactory()
        service.issue_pair(other.id)

        assert service.revoke_all(user.id) == 6
        assert token_count(session, user_id=user.id) == 0
        assert token_count(session, user_id=other.id) == 2

    def test_revoke_all_without_tokens(self, service, user):
        assert service.revoke_all(user.id) == 0

    # ------------------------------ prune -------------------------------- #

    def test_prune_expired_removes_dead_pairs_only(self, service, session, user):
        dead = service.issue_pair(user.id)
        dead_user_id = dead.refresh.record.user_id
        later = utcnow() + timedelta(days=31)

        with freeze_time(later - timedelta(days=2)):
            alive = service.issue_pair(user.id)

        assert service.prune_expired(now=later) == 2
        assert token_count(session, user_id=dead_user_id) == 2
        assert token_count(session, id=alive.access.record.id) == 1

    # ------------------------------ listing ------------------------------ #

    def test_list_pairs_paginates_auth_halves(self, db, user):
        service = TokenPairService(verifier=CredentialVerifier())
        issued = []
        for minute in range(3):
            with freeze_time(f"2025-01-01 10:0{minute}:00"):
                issued.append(service.issue_pair(user.id).access.record.id)

        page = service.list_pairs(user.id, page=1, per_page=2)

        assert page.total == 3
        assert [r.id for r in page.data] == [issued[2], issued[1]]
        assert all(r.is_auth for r in page.data)
