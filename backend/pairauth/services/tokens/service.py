# pairauth/services/tokens/service.py
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from pairauth.models.token import WILDCARD_ABILITY, TokenRecord
from pairauth.repositories.base import Page
from pairauth.services._shared.base import BaseService, ServiceContext
from pairauth.services._shared.errors import InvalidTokenError, NotFoundError
from pairauth.services.tokens.dto import NewToken, TokenLifetimes, TokenPairOut
from pairauth.services.tokens.plaintext import PlainTextToken, generate_secret, hash_secret
from pairauth.services.tokens.verifier import CredentialVerifier
from pairauth.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class TokenPairService(BaseService):
    """
    Token pair lifecycle (issue / rotate / revoke).

    Every pair is an AUTH record plus one REFRESH record pointing at it.
    Both halves are created, rotated and deleted together inside a single
    read-write unit of work; revocation is a plain delete.
    """

    def __init__(
        self,
        *,
        lifetimes: TokenLifetimes | None = None,
        verifier: CredentialVerifier | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param lifetimes: AUTH/REFRESH lifetimes (15 minutes / 30 days by default).
        :param verifier: Credential resolver shared with the request gate.
        :param ctx: Optional request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.lifetimes = lifetimes or TokenLifetimes()
        self.verifier = verifier or CredentialVerifier(ctx=self.ctx)

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue_pair(
        self, user_id: int, abilities: Sequence[str] | None = None
    ) -> TokenPairOut:
        """
        Issue a new AUTH/REFRESH pair for ``user_id``.

        :param user_id: Owner of the pair.
        :param abilities: AUTH abilities; ``["*"]`` when omitted.
        :returns: Both records with their one-time plaintexts.
        :raises NotFoundError: If the user does not exist.
        :raises ValueError: If ``abilities`` is not a non-empty list of strings.
        """
        with self.rw_uow() as uow:
            if uow.users.get(user_id) is None:
                raise NotFoundError("User", user_id)
            pair = self.issue_within(uow, user_id, abilities)

        log.info(
            "token pair issued",
            extra={"user_id": user_id, "token_id": pair.access.record.id},
        )
        return pair

    def issue_within(
        self, uow: UnitOfWork, user_id: int, abilities: Sequence[str] | None = None
    ) -> TokenPairOut:
        """
        Issue a pair inside the caller's unit of work (no commit).

        The AUTH row is flushed first so the REFRESH row can reference its id.
        """
        now = self.now_utc()
        access_secret = generate_secret()
        auth = uow.tokens.add(
            TokenRecord.new_auth(
                user_id=user_id,
                token_hash=hash_secret(access_secret),
                abilities=[WILDCARD_ABILITY] if abilities is None else abilities,
                expires_at=self._expiry(now, self.lifetimes.access),
            )
        )

        refresh_secret = generate_secret()
        refresh = uow.tokens.add(
            TokenRecord.new_refresh(
                auth,
                token_hash=hash_secret(refresh_secret),
                expires_at=self._expiry(now, self.lifetimes.refresh),
            )
        )

        return TokenPairOut(
            access=NewToken(auth, str(PlainTextToken(auth.id, access_secret))),
            refresh=NewToken(refresh, str(PlainTextToken(refresh.id, refresh_secret))),
        )

    # ------------------------------------------------------------------ #
    # Rotate
    # ------------------------------------------------------------------ #

    def refresh_pair(self, refresh_plain: str | None) -> TokenPairOut:
        """
        Exchange a live REFRESH token for a brand-new pair.

        The old pair is deleted and the new one inherits the owner and the
        AUTH abilities, all in one transaction. Both halves are removed with
        guarded deletes, so of two concurrent rotations of the same secret
        only the one whose deletes hit the rows succeeds; the other rolls back.

        :raises InvalidTokenError: If the token is unknown, not a REFRESH
            token, expired, or its AUTH half is gone.
        """
        with self.rw_uow() as uow:
            record = self.verifier.resolve(refresh_plain, repo=uow.tokens, for_update=True)
            if record is None or not record.is_refresh or record.is_expired(self.now_utc()):
                raise InvalidTokenError()

            auth, _ = uow.tokens.find_pair(record, for_update=True)
            if auth is None:
                raise InvalidTokenError()

            old_id = auth.id
            user_id = record.user_id
            abilities = list(auth.abilities)
            if not uow.tokens.delete_record(record) or not uow.tokens.delete_record(auth):
                raise InvalidTokenError()
            pair = self.issue_within(uow, user_id, abilities)

        log.info(
            "token pair rotated",
            extra={"user_id": user_id, "token_id": pair.access.record.id},
        )
        log.debug("token pair revoked by rotation", extra={"token_id": old_id})
        return pair

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def revoke_pair(self, token_plain: str | None) -> None:
        """
        Delete the pair ``token_plain`` belongs to (either half may be given).

        :raises InvalidTokenError: If the token does not resolve.
        """
        with self.rw_uow() as uow:
            record = self._resolve_or_fail(uow, token_plain)
            user_id, token_id = record.user_id, record.auth_token_id
            if not uow.tokens.delete_pair(record):
                raise InvalidTokenError()

        log.info("token pair revoked", extra={"user_id": user_id, "token_id": token_id})

    def revoke_others(self, token_plain: str | None) -> int:
        """
        Delete every pair of the owner except the one ``token_plain`` belongs to.

        :returns: Number of records deleted.
        :raises InvalidTokenError: If the token does not resolve.
        """
        with self.rw_uow() as uow:
            record = self._resolve_or_fail(uow, token_plain)
            user_id, keep_id = record.user_id, record.auth_token_id
            removed = uow.tokens.delete_for_owner(user_id, keep_auth_id=keep_id)

        log.info(
            "other token pairs revoked",
            extra={"user_id": user_id, "token_id": keep_id, "count": removed},
        )
        return removed

    def revoke_all(self, user_id: int) -> int:
        """
        Delete every record owned by ``user_id`` (REFRESH rows first).

        :returns: Number of records deleted.
        """
        with self.rw_uow() as uow:
            removed = uow.tokens.delete_for_owner(user_id)

        log.info("all token pairs revoked", extra={"user_id": user_id, "count": removed})
        return removed

    def prune_expired(self, now: datetime | None = None) -> int:
        """
        Delete pairs whose REFRESH half has expired; they can never rotate again.

        :returns: Number of records deleted.
        """
        moment = now or self.now_utc()
        with self.rw_uow() as uow:
            removed = 0
            for record in uow.tokens.list_expired_refresh(moment):
                removed += uow.tokens.delete_pair(record)

        log.info("expired token pairs pruned", extra={"count": removed})
        return removed

    # ------------------------------------------------------------------ #
    # Listing
    # ------------------------------------------------------------------ #

    def list_pairs(self, user_id: int, *, page: int = 1, per_page: int = 20) -> Page[TokenRecord]:
        """Page through the AUTH halves of ``user_id``'s pairs, newest first."""
        pagination = self.ensure_pagination(page=page, per_page=per_page, sort=["-created_at"])
        with self.ro_uow() as uow:
            return uow.tokens.paginate_auth_for_owner(user_id, pagination)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _resolve_or_fail(self, uow: UnitOfWork, token_plain: str | None) -> TokenRecord:
        record = self.verifier.resolve(token_plain, repo=uow.tokens)
        if record is None:
            raise InvalidTokenError()
        return record

    @staticmethod
    def _expiry(now: datetime, lifetime: timedelta | None) -> datetime | None:
        return now + lifetime if lifetime is not None else None
