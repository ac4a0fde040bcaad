"""Plaintext bearer credentials: ``"<id>|<secret>"``.

Only the SHA-256 digest of the secret is persisted. The plaintext exists in
memory exactly once, when the pair is issued.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass

SEPARATOR = "|"
SECRET_BYTES = 30  # 40 url-safe characters


def generate_secret() -> str:
    """Return a fresh url-safe random secret (never contains ``|``)."""
    return secrets.token_urlsafe(SECRET_BYTES)


def hash_secret(secret: str) -> str:
    """Return the hex SHA-256 digest stored for ``secret``."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def secret_matches(secret: str, token_hash: str) -> bool:
    """Constant-time comparison of ``secret`` against a stored digest."""
    return hmac.compare_digest(hash_secret(secret), token_hash)


@dataclass(frozen=True, slots=True)
class PlainTextToken:
    """
    Parsed bearer credential.

    :param token_id: Primary key of the token record.
    :type token_id: int
    :param secret: Random secret whose digest is stored on the record.
    :type secret: str
    """

    token_id: int
    secret: str

    def __str__(self) -> str:
        return f"{self.token_id}{SEPARATOR}{self.secret}"

    @classmethod
    def parse(cls, raw: str | None) -> PlainTextToken | None:
        """
        Parse ``"<id>|<secret>"``; return ``None`` for anything malformed.

        The id must be decimal digits and the secret non-empty.
        """
        if not raw or not isinstance(raw, str) or SEPARATOR not in raw:
            return None
        token_id, secret = raw.split(SEPARATOR, 1)
        if not token_id.isascii() or not token_id.isdigit() or not secret:
            return None
        return cls(token_id=int(token_id), secret=secret)
