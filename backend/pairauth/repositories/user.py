"""User repository for persistence and credential lookups."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from pairauth.models.user import User
from pairauth.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It never issues tokens; that is the token service's job.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the user when ``email``/``password`` match, else ``None``.

        Unknown email and wrong password are indistinguishable to callers.
        """
        user = self.get_by_email(email)
        if not user or not user.verify_password(password):
            return None
        return user
