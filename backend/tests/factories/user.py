"""Factory Boy definition for :class:`pairauth.models.user.User`."""

from __future__ import annotations

import factory
from pairauth.models.user import User
from werkzeug.security import generate_password_hash

from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"

# Hashing is slow on purpose; hash the shared default once per session.
_DEFAULT_PASSWORD_HASH = generate_password_hash(DEFAULT_PASSWORD)


class UserFactory(BaseFactory):
    """Build persisted :class:`User` instances whose password is ``DEFAULT_PASSWORD``.

    Pass ``password="..."`` to hash a different one.
    """

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    password_hash = _DEFAULT_PASSWORD_HASH

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Hash an explicit password through the model setter."""
        if extracted:
            obj.password = extracted
