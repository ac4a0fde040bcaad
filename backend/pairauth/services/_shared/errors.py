"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or HTTP.
They are the stable contract between repositories, models and services.

The translation to envelope error codes is handled by
:func:`pairauth.core.errors.translate_service_error`.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :type exc: IntegrityError
    :param constraint_name: Database constraint to match (e.g. ``uq_users_email``).
    :type constraint_name: str
    :returns: ``True`` if the error message mentions the constraint.
    :rtype: bool
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to envelope error codes.
    """

    pass


class InvalidCredentialsError(ServiceError):
    """
    Raised when an email/password pair does not authenticate.

    The message never reveals which of the two was wrong.
    """

    def __init__(self, message: str = "Invalid credentials provided.") -> None:
        super().__init__(message)


class InvalidTokenError(ServiceError):
    """
    Raised for any unusable bearer token.

    Malformed, unknown, forged, wrong-type and expired tokens all raise this
    same error so callers cannot tell the cases apart.
    """

    def __init__(self, message: str = "Invalid token.") -> None:
        super().__init__(message)


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"
