"""User model: the principal that owns token pairs."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from pairauth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authenticated principal.

    Fields
    ------
    name : str
        Display name.
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    password_hash : str
        Hashed password (write-only setter via ``password``).
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Name is required.")
        return value.strip()

    # -------------------- Wire projection --------------------
    def to_envelope(self) -> dict[str, Any]:
        """Public profile; never includes the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
