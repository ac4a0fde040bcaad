"""Token records: the persisted halves of an access/refresh pair."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, validates

from pairauth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, UTCDateTime, utcnow

REFRESH_TOKEN_ABILITY = "refresh-auth-token"
WILDCARD_ABILITY = "*"


class TokenType(str, Enum):
    """Closed set of token kinds. Behaviour differences hang off the tag."""

    AUTH = "auth"
    REFRESH = "refresh"

    @property
    def requires_parent(self) -> bool:
        """REFRESH records always point at the AUTH record they were issued for."""
        return self is TokenType.REFRESH

    @property
    def fixed_abilities(self) -> list[str] | None:
        """Abilities imposed by the type, or ``None`` when the caller chooses."""
        if self is TokenType.REFRESH:
            return [REFRESH_TOKEN_ABILITY]
        return None

    def authenticates(self, *, rotation_endpoint: bool) -> bool:
        """REFRESH tokens only open the rotation endpoint; AUTH tokens everything else."""
        return (self is TokenType.REFRESH) == rotation_endpoint


class TokenRecord(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One half of a token pair.

    Fields
    ------
    user_id : int
        Owning principal. Stored on both halves of the pair.
    token_hash : str
        SHA-256 hex digest of the secret. The plaintext is never stored.
    type : TokenType
        ``auth`` or ``refresh``.
    abilities : list[str]
        Ordered capability strings (``["*"]`` grants everything).
    parent_token_id : int | None
        For REFRESH records, the id of the paired AUTH record.
    expires_at : datetime | None
        Expiry instant; ``None`` never expires.
    """

    __tablename__ = "personal_access_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[TokenType] = mapped_column(
        SAEnum(
            TokenType,
            name="token_type",
            native_enum=False,
            length=16,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
    )
    abilities: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    parent_token_id: Mapped[int | None] = mapped_column(
        ForeignKey("personal_access_tokens.id", ondelete="CASCADE"), nullable=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_personal_access_tokens_token_hash"),
        UniqueConstraint("parent_token_id", name="uq_personal_access_tokens_parent_token_id"),
        CheckConstraint(
            "(type = 'auth' AND parent_token_id IS NULL)"
            " OR (type = 'refresh' AND parent_token_id IS NOT NULL)",
            name="pair_link",
        ),
        Index("ix_personal_access_tokens_user_id", "user_id"),
        # Ids of revoked records are never handed out again.
        {"sqlite_autoincrement": True},
    )

    # -------------------- Constructors --------------------
    @classmethod
    def new_auth(
        cls,
        *,
        user_id: int,
        token_hash: str,
        abilities: Sequence[str],
        expires_at: datetime | None,
    ) -> TokenRecord:
        """Build an AUTH record carrying the requested abilities."""
        return cls(
            user_id=user_id,
            token_hash=token_hash,
            type=TokenType.AUTH,
            abilities=abilities,
            expires_at=expires_at,
        )

    @classmethod
    def new_refresh(
        cls,
        parent: TokenRecord,
        *,
        token_hash: str,
        expires_at: datetime | None,
    ) -> TokenRecord:
        """Build the REFRESH record paired with a flushed AUTH ``parent``."""
        if not parent.is_auth or parent.id is None:
            raise ValueError("Refresh tokens can only be issued for a persisted auth token.")
        return cls(
            user_id=parent.user_id,
            token_hash=token_hash,
            type=TokenType.REFRESH,
            abilities=TokenType.REFRESH.fixed_abilities,
            parent_token_id=parent.id,
            expires_at=expires_at,
        )

    # -------------------- Validators --------------------
    @validates("abilities")
    def _validate_abilities(self, key: str, value: Sequence[str]) -> list[str]:
        """
        Ensure abilities are a non-empty list of non-empty strings.

        :raises ValueError: On an empty list, a bare string or non-string items.
        """
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or not value:
            raise ValueError("Abilities must be a non-empty list of strings.")
        if not all(isinstance(item, str) and item for item in value):
            raise ValueError("Abilities must be a non-empty list of strings.")
        return list(value)

    # -------------------- Domain helpers --------------------
    @property
    def is_auth(self) -> bool:
        return self.type == TokenType.AUTH

    @property
    def is_refresh(self) -> bool:
        return self.type == TokenType.REFRESH

    @property
    def auth_token_id(self) -> int | None:
        """Id of the AUTH half of this record's pair."""
        return self.parent_token_id if self.is_refresh else self.id

    def is_expired(self, now: datetime | None = None) -> bool:
        """``True`` once ``now`` reaches ``expires_at``; never for non-expiring records."""
        if self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at

    def can(self, ability: str) -> bool:
        """Return whether the record grants ``ability``."""
        return WILDCARD_ABILITY in self.abilities or ability in self.abilities

    # -------------------- Wire projection --------------------
    def to_envelope(self) -> dict[str, Any]:
        """Public view of the record; the hash never leaves the server."""
        return {
            "id": self.id,
            "type": self.type,
            "abilities": list(self.abilities),
            "expires_at": self.expires_at,
            "created_at": self.created_at,
        }
