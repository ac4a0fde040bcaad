# pairauth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    :param ip: Remote address, recorded on failed attempts.
    :type ip: str | None
    """

    email: str
    password: str
    ip: str | None = None


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for self-registration.

    :param name: Display name.
    :type name: str
    :param email: Login email.
    :type email: str
    :param password: Raw password (hashed before storage).
    :type password: str
    """

    name: str
    email: str
    password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenResponseOut:
    """
    Wire payload for a freshly issued pair.

    :param access_token: AUTH plaintext.
    :type access_token: str
    :param token_type: Always ``"Bearer"``.
    :type token_type: str
    :param expires_in: Whole milliseconds until the AUTH token expires
        (``None`` for non-expiring tokens).
    :type expires_in: int | None
    :param refresh_token: REFRESH plaintext.
    :type refresh_token: str
    """

    access_token: str
    token_type: str
    expires_in: int | None
    refresh_token: str
