"""Token record repository: pair lookups and cascading deletes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, cast

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.orm import InstrumentedAttribute

from pairauth.models.token import TokenRecord, TokenType
from pairauth.repositories.base import BaseRepository, Page, Pagination


class TokenRecordRepository(BaseRepository[TokenRecord]):
    """Persistence-only repository for :class:`TokenRecord`.

    Deleting an AUTH record always removes its REFRESH child in the same
    transaction; children go first so the pairing constraint never dangles.
    Deletes are issued as guarded statements and report the rows they hit.
    """

    model = TokenRecord

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        return {
            "created_at": TokenRecord.created_at,
            "expires_at": TokenRecord.expires_at,
        }

    # ------------------------------ Lookups ----------------------------------

    def find_child(self, auth_id: int, *, for_update: bool = False) -> TokenRecord | None:
        """Return the REFRESH record paired with AUTH record ``auth_id``."""
        stmt = select(TokenRecord).where(TokenRecord.parent_token_id == auth_id)
        if for_update:
            stmt = stmt.with_for_update()
        return cast(TokenRecord | None, self.session.execute(stmt).scalars().first())

    def find_pair(
        self, record: TokenRecord, *, for_update: bool = False
    ) -> tuple[TokenRecord | None, TokenRecord | None]:
        """Return ``(auth, refresh)`` for the pair ``record`` belongs to.

        Either side may be ``None`` when it has already been deleted.
        """
        if record.is_refresh:
            auth = (
                self.get_for_update(record.parent_token_id)
                if for_update
                else self.get(record.parent_token_id)
            )
            return auth, record
        return record, self.find_child(record.id, for_update=for_update)

    def list_for_owner(
        self, user_id: int, *, exclude_ids: Sequence[int] = ()
    ) -> list[TokenRecord]:
        """All records of ``user_id``, skipping ``exclude_ids``.

        Exclusion also skips REFRESH records whose parent is excluded, so
        excluding an AUTH id keeps its whole pair out of the result.
        """
        stmt = select(TokenRecord).where(TokenRecord.user_id == user_id)
        if exclude_ids:
            stmt = stmt.where(
                TokenRecord.id.not_in(exclude_ids),
                or_(
                    TokenRecord.parent_token_id.is_(None),
                    TokenRecord.parent_token_id.not_in(exclude_ids),
                ),
            )
        return list(self.session.execute(stmt).scalars().all())

    def paginate_auth_for_owner(self, user_id: int, pagination: Pagination) -> Page[TokenRecord]:
        """Page through the AUTH halves (one per session) owned by ``user_id``."""
        stmt = select(TokenRecord).where(
            and_(TokenRecord.user_id == user_id, TokenRecord.type == TokenType.AUTH)
        )
        return self.paginate(stmt, pagination)

    def list_expired_refresh(self, now: datetime) -> list[TokenRecord]:
        """REFRESH records whose expiry has passed; their pairs can no longer rotate."""
        stmt = select(TokenRecord).where(
            TokenRecord.type == TokenType.REFRESH,
            TokenRecord.expires_at.is_not(None),
            TokenRecord.expires_at <= now,
        )
        return list(self.session.execute(stmt).scalars().all())

    # ------------------------------ Deletes ----------------------------------

    def delete_record(self, record: TokenRecord) -> int:
        """Delete ``record`` only while its row still carries the same digest.

        Returns ``0`` when another transaction removed the row first, which
        lets callers detect that they lost a race for the credential.
        """
        stmt = delete(TokenRecord).where(
            TokenRecord.id == record.id,
            TokenRecord.token_hash == record.token_hash,
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_pair(self, record: TokenRecord) -> int:
        """Delete ``record`` together with the other half of its pair.

        :returns: Number of records removed.
        :rtype: int
        """
        auth, refresh = self.find_pair(record)
        return sum(self.delete_record(doomed) for doomed in (refresh, auth) if doomed is not None)

    def delete_many(self, records: Sequence[TokenRecord]) -> int:
        """Delete ``records`` REFRESH-first and return how many rows went away."""
        removed = 0
        for batch in (
            [r.id for r in records if r.is_refresh],
            [r.id for r in records if not r.is_refresh],
        ):
            if batch:
                stmt = delete(TokenRecord).where(TokenRecord.id.in_(batch))
                removed += int(self.session.execute(stmt).rowcount or 0)
        return removed

    def delete_for_owner(self, user_id: int, *, keep_auth_id: int | None = None) -> int:
        """Delete every pair of ``user_id``, except the pair of ``keep_auth_id``.

        :returns: Number of records removed.
        :rtype: int
        """
        exclude = [keep_auth_id] if keep_auth_id is not None else []
        return self.delete_many(self.list_for_owner(user_id, exclude_ids=exclude))
