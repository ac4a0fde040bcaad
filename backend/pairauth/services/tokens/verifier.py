"""Bearer credential resolution and the per-endpoint authentication gate."""

from __future__ import annotations

from datetime import datetime

from pairauth.models.token import TokenRecord
from pairauth.repositories.token import TokenRecordRepository
from pairauth.services._shared.base import BaseService, ServiceContext
from pairauth.services._shared.errors import InvalidTokenError
from pairauth.services.tokens.plaintext import PlainTextToken, secret_matches

DEFAULT_ROTATION_ENDPOINT = "auth.refresh"


class CredentialVerifier(BaseService):
    """
    Resolve plaintext credentials to records and decide whether they may
    authenticate a given endpoint.

    REFRESH tokens authenticate the rotation endpoint and nothing else;
    AUTH tokens authenticate everything except it.

    :param rotation_endpoint: Flask endpoint name of the rotation route.
    :type rotation_endpoint: str
    """

    def __init__(
        self,
        *,
        rotation_endpoint: str = DEFAULT_ROTATION_ENDPOINT,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.rotation_endpoint = rotation_endpoint

    def resolve(
        self,
        token_plain: str | None,
        *,
        repo: TokenRecordRepository,
        for_update: bool = False,
    ) -> TokenRecord | None:
        """
        Return the record ``token_plain`` refers to, or ``None``.

        Malformed input, unknown ids and secret mismatches all give ``None``.
        Expiry and type are not checked here.

        :param token_plain: ``"<id>|<secret>"`` as presented by the client.
        :param repo: Token repository bound to the caller's unit of work.
        :param for_update: Lock the row for the rest of the transaction.
        """
        parsed = PlainTextToken.parse(token_plain)
        if parsed is None:
            return None
        record = repo.get_for_update(parsed.token_id) if for_update else repo.get(parsed.token_id)
        if record is None or not secret_matches(parsed.secret, record.token_hash):
            return None
        return record

    def is_authorized(
        self, record: TokenRecord | None, endpoint: str | None, now: datetime | None = None
    ) -> bool:
        """The authentication gate: live record whose type matches the endpoint."""
        if record is None or record.is_expired(now or self.now_utc()):
            return False
        return record.type.authenticates(rotation_endpoint=endpoint == self.rotation_endpoint)

    def authenticate(self, token_plain: str | None, endpoint: str | None) -> TokenRecord:
        """
        Resolve ``token_plain`` and apply the gate for ``endpoint``.

        :raises InvalidTokenError: When the credential is unusable for ``endpoint``.
        """
        with self.ro_uow() as uow:
            record = self.resolve(token_plain, repo=uow.tokens)
            if not self.is_authorized(record, endpoint):
                raise InvalidTokenError()
            return record
