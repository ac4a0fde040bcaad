"""Factory Boy definitions for both halves of a token pair.

Records built here carry the digest of a known secret, so tests can compose
a working plaintext with :func:`plain_text_for`.
"""

from __future__ import annotations

from datetime import timedelta

import factory
from pairauth.models.base import utcnow
from pairauth.models.token import REFRESH_TOKEN_ABILITY, TokenRecord, TokenType
from pairauth.services.tokens.plaintext import PlainTextToken, hash_secret

from tests.factories import BaseFactory
from tests.factories.user import UserFactory


def secret_for(kind: str, n: int) -> str:
    return f"{kind}-secret-{n:04d}"


def plain_text_for(record: TokenRecord, secret: str) -> str:
    """Compose the ``"<id>|<secret>"`` credential of a factory record."""
    return str(PlainTextToken(record.id, secret))


class AuthTokenFactory(BaseFactory):
    """AUTH records, 15 minutes from expiry by default."""

    class Meta:
        model = TokenRecord
        exclude = ("secret",)

    class Params:
        owner = factory.SubFactory(UserFactory)

    id = None
    secret = factory.Sequence(lambda n: secret_for("auth", n))
    user_id = factory.SelfAttribute("owner.id")
    type = TokenType.AUTH
    token_hash = factory.LazyAttribute(lambda o: hash_secret(o.secret))
    abilities = factory.LazyFunction(lambda: ["*"])
    parent_token_id = None
    expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(minutes=15))


class RefreshTokenFactory(BaseFactory):
    """REFRESH records paired with a (new by default) AUTH record."""

    class Meta:
        model = TokenRecord
        exclude = ("secret",)

    class Params:
        parent = factory.SubFactory(AuthTokenFactory)

    id = None
    secret = factory.Sequence(lambda n: secret_for("refresh", n))
    user_id = factory.SelfAttribute("parent.user_id")
    type = TokenType.REFRESH
    token_hash = factory.LazyAttribute(lambda o: hash_secret(o.secret))
    abilities = factory.LazyFunction(lambda: [REFRESH_TOKEN_ABILITY])
    parent_token_id = factory.SelfAttribute("parent.id")
    expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(days=30))
