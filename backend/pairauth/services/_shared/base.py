# pairauth/services/_shared/base.py
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from pairauth.core import errors as api_errors
from pairauth.models.base import utcnow
from pairauth.repositories.base import Pagination
from pairauth.services._shared.errors import ServiceError
from pairauth.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (auth, client, request ids).

    :param actor_id: Authenticated user identifier.
    :param token_id: Id of the AUTH record the request authenticated with.
    :param request_id: Correlation id for logging/tracing.
    :param ip: Client address as seen after proxy fixing.
    """

    actor_id: int | None = None
    token_id: int | None = None
    request_id: str | None = None
    ip: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Offer shared validation helpers (pagination/sorting) and the clock.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Token-shape rules (pairing, fixed abilities) live in the models.
    """

    MAX_PER_PAGE = 100

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (auth, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork()

    # ------------------------------ Clock ------------------------------------

    def now_utc(self) -> datetime:
        """Return the current aware UTC instant (patchable with freezegun)."""
        return utcnow()

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(
        self, *, page: int, per_page: int, sort: Iterable[str] | None = None
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :type page: int
        :param per_page: Page size, capped at ``MAX_PER_PAGE``.
        :type per_page: int
        :param sort: Sort tokens like ``["-created_at"]``.
        :type sort: Iterable[str] | None
        :returns: Pagination instance.
        :rtype: Pagination
        """
        page = max(1, int(page))
        per_page = min(max(1, int(per_page)), self.MAX_PER_PAGE)
        return Pagination(page=page, per_page=per_page, sort=list(sort or []))

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ServiceError):
            return api_errors.translate_service_error(exc)
        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
