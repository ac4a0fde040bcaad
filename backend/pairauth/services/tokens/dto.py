# pairauth/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pairauth.models.token import TokenRecord

# ---------------------------- Output DTOs --------------------------------- #


@dataclass(frozen=True, slots=True)
class NewToken:
    """
    A freshly issued record together with its one-time plaintext.

    :param record: Persisted token record.
    :type record: TokenRecord
    :param plain_text: ``"<id>|<secret>"``; not recoverable later.
    :type plain_text: str
    """

    record: TokenRecord
    plain_text: str


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with both halves of an issued pair.

    :param access: The AUTH half.
    :type access: NewToken
    :param refresh: The REFRESH half.
    :type refresh: NewToken
    """

    access: NewToken
    refresh: NewToken


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenLifetimes:
    """
    Token emission configuration. ``None`` means the token never expires.

    :param access: AUTH token lifetime.
    :type access: timedelta | None
    :param refresh: REFRESH token lifetime.
    :type refresh: timedelta | None
    """

    access: timedelta | None = timedelta(minutes=15)
    refresh: timedelta | None = timedelta(days=30)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> TokenLifetimes:
        """Build lifetimes from ``ACCESS_TOKEN_TTL_MINUTES``/``REFRESH_TOKEN_TTL_DAYS``."""
        minutes = config.get("ACCESS_TOKEN_TTL_MINUTES", 15)
        days = config.get("REFRESH_TOKEN_TTL_DAYS", 30)
        return cls(
            access=timedelta(minutes=int(minutes)) if minutes else None,
            refresh=timedelta(days=int(days)) if days else None,
        )
