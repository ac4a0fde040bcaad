"""Generic repository base and query utilities for SQLAlchemy 2.x.

Persistence-only concerns shared by all repositories:

- Deterministic pagination (primary-key tiebreaker) with an optional total.
- Safe sorting through a per-repository whitelist.
- Row locking for read-modify-delete flows.
- No business logic and no commit/rollback: services own transactions through
  a Unit of Work.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from pairauth.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


# ------------------------------- Pagination ----------------------------------


@dataclass(slots=True)
class Pagination:
    """Pagination input parameters.

    :param page: 1-based page number.
    :type page: int
    :param per_page: Page size.
    :type per_page: int
    :param sort: Public sort tokens (e.g., ``["-created_at"]``).
    :type sort: list[str]
    """

    page: int
    per_page: int
    sort: list[str]


@dataclass(slots=True)
class Page(Generic[E]):
    """Result page with metadata.

    Satisfies :class:`pairauth.core.envelope.Paginated`, so the envelope
    lifts its pagination block into ``meta``.

    :param data: Entities in the current page.
    :type data: Sequence[E]
    :param current_page: 1-based current page number.
    :type current_page: int
    :param per_page: Page size.
    :type per_page: int
    :param total: Total item count for the query.
    :type total: int
    """

    data: Sequence[E]
    current_page: int
    per_page: int
    total: int


# ----------------------------- Sorting utilities -----------------------------


def parse_sort_tokens(raw: Iterable[str]) -> list[tuple[str, bool]]:
    """Parse public sort tokens into ``(field, is_desc)`` tuples."""
    parsed: list[tuple[str, bool]] = []
    for token in raw:
        is_desc = token.startswith("-")
        field = (token[1:] if is_desc else token).strip()
        if field:
            parsed.append((field, is_desc))
    return parsed


def apply_sorting(
    stmt: Select[Any],
    sortable_fields: Mapping[str, InstrumentedAttribute[Any]],
    tokens: Iterable[str],
    *,
    pk_attr: InstrumentedAttribute[Any] | None,
) -> Select[Any]:
    """Apply whitelisted ``ORDER BY`` clauses plus a primary-key tiebreaker.

    Unknown sort tokens are ignored silently.
    """
    orders: list[Any] = []
    for field, is_desc in parse_sort_tokens(tokens):
        col = sortable_fields.get(field)
        if isinstance(col, InstrumentedAttribute):
            orders.append(col.desc() if is_desc else col.asc())

    if orders:
        stmt = stmt.order_by(*orders)
    if pk_attr is not None:
        stmt = stmt.order_by(pk_attr.asc())
    return stmt


def paginate_select(
    session: Session,
    stmt: Select[Any],
    *,
    page: int,
    per_page: int,
) -> tuple[list[Any], int]:
    """Execute a select for one page and count the full result.

    The ``ORDER BY`` is stripped for the ``COUNT`` query.

    :returns: Tuple of ``(items, total)``.
    :rtype: tuple[list[Any], int]
    """
    page = max(int(page), 1)
    per_page = max(int(per_page), 1)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int(session.execute(count_stmt).scalar_one())

    sliced = stmt.limit(per_page).offset((page - 1) * per_page)
    items = list(session.execute(sliced).scalars().all())
    return items, total


# ------------------------------ Base repository ------------------------------


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model`` and MAY override ``_sortable_fields``.
    Repositories never open, commit or roll back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        Without an explicit session the repository falls back to the
        Flask-scoped session.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        return cast(InstrumentedAttribute[Any], getattr(self.model, "id"))

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public sort keys to model attributes."""
        return {}

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key."""
        stmt = select(self.model).where(self._pk_attr() == entity_id)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def get_for_update(self, entity_id: Any) -> E | None:
        """Retrieve an entity by PK with a ``FOR UPDATE`` lock (when supported).

        Dialects without row locks (SQLite) ignore the clause; their writers
        are serialized by the database lock instead.
        """
        stmt = select(self.model).where(self._pk_attr() == entity_id).with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def find_one(self, **filters: Any) -> E | None:
        """Find a single entity by simple equality filters."""
        clauses = [getattr(self.model, k) == v for k, v in filters.items()]
        stmt = select(self.model)
        if clauses:
            stmt = stmt.where(and_(*clauses))
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def delete(self, instance: E) -> None:
        """Delete an entity and flush changes."""
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()

    # ------------------------------- Listing ---------------------------------

    def paginate(self, stmt: Select[Any], pagination: Pagination) -> Page[E]:
        """Paginate ``stmt`` with whitelisted sorting.

        :param stmt: Filtered base select for ``model``.
        :type stmt: :class:`sqlalchemy.sql.Select`
        :param pagination: Pagination parameters.
        :type pagination: Pagination
        :returns: :class:`Page` with items and metadata.
        :rtype: Page[E]
        """
        stmt = apply_sorting(
            stmt, self._sortable_fields(), pagination.sort, pk_attr=self._pk_attr()
        )
        items, total = paginate_select(
            self.session, stmt, page=pagination.page, per_page=pagination.per_page
        )
        return Page(
            data=cast(list[E], items),
            current_page=pagination.page,
            per_page=pagination.per_page,
            total=total,
        )
