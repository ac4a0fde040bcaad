# pairauth/services/auth/service.py
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from pairauth.models.token import TokenRecord
from pairauth.models.user import User
from pairauth.repositories.base import Page
from pairauth.services._shared.base import BaseService, ServiceContext
from pairauth.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    violates,
)
from pairauth.services.auth.dto import LoginIn, RegisterIn, TokenResponseOut
from pairauth.services.tokens.dto import TokenPairOut
from pairauth.services.tokens.service import TokenPairService

log = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"
ONE_MILLISECOND = timedelta(milliseconds=1)


class AuthService(BaseService):
    """
    Authentication use-cases (login / register / refresh / logout / whoami).

    Credential checks happen here; every token operation is delegated to
    :class:`TokenPairService`.
    """

    def __init__(
        self,
        *,
        tokens: TokenPairService | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param tokens: Token pair engine.
        :param ctx: Optional request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = tokens or TokenPairService(ctx=self.ctx)

    # ------------------------------------------------------------------ #
    # Login / Register
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenResponseOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Token payload.
        :raises InvalidCredentialsError: If the email is unknown or the password wrong.
        """
        with self.ro_uow() as uow:
            user = uow.users.authenticate(dto.email, dto.password)
            user_id = user.id if user is not None else None

        if user_id is None:
            log.warning(
                "invalid login attempt",
                extra={"email": dto.email, "ip": dto.ip or self.ctx.ip},
            )
            raise InvalidCredentialsError()

        return self.token_payload(self.tokens.issue_pair(user_id))

    def register(self, dto: RegisterIn) -> User:
        """
        Create a user account.

        :raises ConflictError: If the email is already registered.
        """
        with self.rw_uow() as uow:
            if uow.users.exists_by_email(dto.email):
                raise ConflictError("User", "Email already registered.")
            user = User(name=dto.name, email=dto.email)
            user.password = dto.password
            try:
                uow.users.add(user)
            except IntegrityError as exc:
                # PostgreSQL names the constraint; SQLite names the column.
                if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                    raise ConflictError("User", "Email already registered.") from exc
                raise

        log.info("user registered", extra={"user_id": user.id})
        return user

    # ------------------------------------------------------------------ #
    # Token lifecycle
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str | None) -> TokenResponseOut:
        """Rotate the pair that ``refresh_token`` belongs to."""
        return self.token_payload(self.tokens.refresh_pair(refresh_token))

    def logout(self, token: str | None) -> None:
        """Revoke the pair of the presented token."""
        self.tokens.revoke_pair(token)

    def logout_others(self, token: str | None) -> int:
        """Revoke every other pair of the presented token's owner."""
        return self.tokens.revoke_others(token)

    def logout_all(self, user_id: int) -> int:
        """Revoke every pair of ``user_id``, the current one included."""
        return self.tokens.revoke_all(user_id)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def whoami(self, user_id: int) -> User:
        """
        Return the authenticated principal.

        :raises NotFoundError: If the user vanished after authentication.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return user

    def sessions(self, user_id: int, *, page: int = 1, per_page: int = 20) -> Page[TokenRecord]:
        """Page through the live sessions (AUTH halves) of ``user_id``."""
        return self.tokens.list_pairs(user_id, page=page, per_page=per_page)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def token_payload(self, pair: TokenPairOut) -> TokenResponseOut:
        """Project an issued pair onto the wire payload."""
        expires_at = pair.access.record.expires_at
        expires_in = None
        if expires_at is not None:
            expires_in = max((expires_at - self.now_utc()) // ONE_MILLISECOND, 0)
        return TokenResponseOut(
            access_token=pair.access.plain_text,
            token_type=TOKEN_TYPE,
            expires_in=expires_in,
            refresh_token=pair.refresh.plain_text,
        )
