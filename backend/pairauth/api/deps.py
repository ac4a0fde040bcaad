"""Shared API helpers: bearer authentication, service wiring and timing."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import current_app, g, request

from pairauth.core.errors import Forbidden
from pairauth.core.logger import ensure_request_id
from pairauth.models.token import TokenRecord
from pairauth.schemas.common import PaginationQuerySchema
from pairauth.services._shared.base import ServiceContext
from pairauth.services._shared.errors import ServiceError
from pairauth.services.auth.service import AuthService
from pairauth.services.tokens.dto import TokenLifetimes
from pairauth.services.tokens.service import TokenPairService
from pairauth.services.tokens.verifier import DEFAULT_ROTATION_ENDPOINT, CredentialVerifier

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


# ----------------------------- Service wiring --------------------------------


def service_context() -> ServiceContext:
    """Build the request-scoped context handed to services."""

    return ServiceContext(
        actor_id=g.get("current_user_id"),
        token_id=g.get("current_token_id"),
        request_id=ensure_request_id(),
        ip=request.remote_addr,
    )


def build_verifier() -> CredentialVerifier:
    """Return a verifier aware of the configured rotation endpoint."""

    endpoint = current_app.config.get("TOKEN_REFRESH_ENDPOINT", DEFAULT_ROTATION_ENDPOINT)
    return CredentialVerifier(rotation_endpoint=endpoint, ctx=service_context())


def build_token_service() -> TokenPairService:
    """Return the token pair engine configured from the app settings."""

    return TokenPairService(
        lifetimes=TokenLifetimes.from_config(current_app.config),
        verifier=build_verifier(),
        ctx=service_context(),
    )


def build_auth_service() -> AuthService:
    """Return the authentication use-case service."""

    return AuthService(tokens=build_token_service(), ctx=service_context())


# ----------------------------- Request parsing -------------------------------


def bearer_token() -> str | None:
    """Return the credential from ``Authorization: Bearer <token>``, if any."""

    header = request.headers.get("Authorization", "")
    if header[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def parse_pagination(default_per_page: int = 20, max_per_page: int = 100) -> dict[str, int]:
    """Parse ``page``/``per_page`` from ``request.args`` using Marshmallow."""

    schema = PaginationQuerySchema(default_per_page=default_per_page, max_per_page=max_per_page)
    return schema.load(request.args)


def current_token() -> TokenRecord:
    """Return the record that authenticated the current request."""

    return g.current_token


# ------------------------------ Decorators -----------------------------------


def require_token(func: F) -> F:
    """Authenticate the bearer credential against the current endpoint.

    On success the record, its owner id and the raw credential are placed on
    :data:`flask.g`. Any failure renders ``UNAUTHENTICATED``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        verifier = build_verifier()
        try:
            record = verifier.authenticate(token, request.endpoint)
        except ServiceError as exc:
            raise verifier.translate_exceptions(exc) from exc
        g.current_token = record
        g.current_token_id = record.auth_token_id
        g.current_user_id = record.user_id
        g.bearer_token = token
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_ability(ability: str) -> Callable[[F], F]:
    """Ensure the authenticated token grants ``ability`` (``"*"`` grants all)."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not current_token().can(ability):
                raise Forbidden()
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
