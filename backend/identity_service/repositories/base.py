"""Generic repository base and query utilities for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:
- Strongly-typed pagination and sorting helpers.
- Safe sorting with a whitelist mapping (prevents SQL injection).
- Deterministic pagination (adds primary-key tiebreaker).
- Optional total counting with an optimized strategy.
- No business logic, no commit/rollback; Services own transactions.

Design decisions
----------------
* Repositories MUST remain thin and persistence-focused:
  - They never implement use cases or domain policies.
  - They never call commit/rollback; Services define the Unit of Work.
* Store-level failures that have a meaning in the service taxonomy (e.g. a
  stale version on flush) are translated here, at the boundary.
* Sorting is opt-in per aggregate via ``_sortable_fields`` mapping.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from identity_service.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


# ------------------------------- Pagination ----------------------------------


@dataclass(slots=True)
class Pagination:
    """Pagination input parameters.

    :param page: 1-based page number (validated to be ``>= 1``).
    :type page: int
    :param limit: Page size (validated to be ``>= 1``).
    :type limit: int
    :param sort: Public sort tokens (e.g., ``["-created_at", "email"]``).
    :type sort: list[str]
    """

    page: int
    limit: int
    sort: list[str]


@dataclass(slots=True)
class Page(Generic[E]):
    """Result page with metadata.

    :param items: Listed entities in the current page.
    :type items: Sequence[E]
    :param total: Total item count for the query (when computed).
    :type total: int
    :param page: 1-based current page number.
    :type page: int
    :param limit: Page size.
    :type limit: int
    """

    items: Sequence[E]
    total: int
    page: int
    limit: int


# ----------------------------- Sorting utilities -----------------------------


def parse_sort_tokens(raw: Iterable[str]) -> list[tuple[str, bool]]:
    """Parse public sort tokens into ``(field, is_desc)`` tuples.

    :param raw: Public tokens like ``["-created_at", "email"]``.
    :type raw: Iterable[str]
    :returns: List of ``(field_name, is_desc)`` tokens.
    :rtype: list[tuple[str, bool]]
    """
    parsed: list[tuple[str, bool]] = []
    for token in raw:
        is_desc = token.startswith("-")
        field = token[1:] if is_desc else token
        field = field.strip()
        if field:
            parsed.append((field, is_desc))
    return parsed


def _apply_sorting(
    stmt: Select[Any],
    sortable_fields: Mapping[str, InstrumentedAttribute[Any]],
    tokens: Iterable[str],
    *,
    pk_attr: InstrumentedAttribute[Any] | None,
) -> Select[Any]:
    """Apply safe ``ORDER BY`` clauses based on a whitelist mapping.

    Unknown sort tokens are ignored silently. The model's primary key is always
    appended as a final tiebreaker to stabilize pagination; it follows the
    direction of the first token so "newest first" stays newest first.

    :param stmt: Base selectable.
    :type stmt: :class:`sqlalchemy.sql.Select`
    :param sortable_fields: Public field → SQLAlchemy attribute mapping.
    :type sortable_fields: Mapping[str, InstrumentedAttribute]
    :param tokens: Public sort tokens (e.g., ``["-created_at"]``).
    :type tokens: Iterable[str]
    :param pk_attr: Primary-key attribute used as a tiebreaker.
    :type pk_attr: InstrumentedAttribute | None
    :returns: Modified select with ``ORDER BY`` clauses.
    :rtype: :class:`sqlalchemy.sql.Select`
    """
    orders: list[Any] = []
    first_desc = False
    for field, is_desc in parse_sort_tokens(tokens):
        col = sortable_fields.get(field)
        if isinstance(col, InstrumentedAttribute):
            if not orders:
                first_desc = is_desc
            orders.append(col.desc() if is_desc else col.asc())

    if orders:
        stmt = stmt.order_by(*orders)

    if pk_attr is not None:
        stmt = stmt.order_by(pk_attr.desc() if first_desc else pk_attr.asc())

    return stmt


# --------------------------- Pagination execution ----------------------------


def paginate_select(
    session: Session,
    stmt: Select[Any],
    *,
    page: int,
    limit: int,
    with_total: bool = True,
) -> tuple[list[Any], int]:
    """Execute a select with pagination and an optional total count.

    The statement's existing ``ORDER BY`` is stripped for the ``COUNT`` to avoid
    unnecessary sorting overhead.

    :param session: Active SQLAlchemy session.
    :type session: :class:`sqlalchemy.orm.Session`
    :param stmt: Base select to paginate (already filtered/sorted).
    :type stmt: :class:`sqlalchemy.sql.Select`
    :param page: 1-based page number (will be clamped to ``>= 1``).
    :type page: int
    :param limit: Page size (will be clamped to ``>= 1``).
    :type limit: int
    :param with_total: Whether to compute the total row count.
    :type with_total: bool
    :returns: Tuple of ``(items, total)`` where ``total`` is 0 when ``with_total=False``.
    :rtype: tuple[list[Any], int]
    """
    page = max(int(page), 1)
    limit = max(int(limit), 1)

    total = 0
    if with_total:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = int(session.execute(count_stmt).scalar_one())

    offset = (page - 1) * limit
    sliced = stmt.limit(limit).offset(offset)
    items = list(session.execute(sliced).scalars().all())
    return items, total


# ------------------------------ Base repository ------------------------------


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define:

    * ``model``: the SQLAlchemy mapped class.

    Subclasses MAY override:

    * ``_sortable_fields`` to expose safe sort keys.

    This class NEVER:

    * opens/commits/rolls back transactions,
    * implements business rules or cross-aggregate coordination.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``identity_service.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        """Return the model's primary-key attribute (``model.id``) if present."""
        return getattr(self.model, "id", None)

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public sort keys to model attributes.

        Subclasses should override and expose only safe, indexed columns.

        :returns: Public key → ORM attribute mapping.
        :rtype: Mapping[str, InstrumentedAttribute]
        """
        return {}

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity for persistence and flush to materialize the PK.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        :raises sqlalchemy.exc.IntegrityError: On constraint violations.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key.

        :param entity_id: Primary-key value.
        :type entity_id: Any
        :returns: Entity or ``None``.
        :rtype: E | None
        :raises RuntimeError: If no PK attribute can be detected.
        """
        pk_attr = self._pk_attr()
        if pk_attr is None:
            raise RuntimeError("BaseRepository.get requires a detectable PK attribute.")
        result = self.session.execute(select(self.model).where(pk_attr == entity_id))
        return cast(E | None, result.scalars().first())

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()

    # ------------------------------- Listing ---------------------------------

    def paginate(self, pagination: Pagination, *, with_total: bool = True) -> Page[E]:
        """Paginate entities with stable sorting and optional total.

        :param pagination: Pagination parameters.
        :type pagination: Pagination
        :param with_total: Whether to compute total rows.
        :type with_total: bool
        :returns: :class:`Page` with items and metadata.
        :rtype: Page[E]
        """
        stmt: Select[Any] = select(self.model)
        stmt = _apply_sorting(
            stmt, self._sortable_fields(), pagination.sort, pk_attr=self._pk_attr()
        )

        raw_items, total = paginate_select(
            self.session,
            stmt,
            page=pagination.page,
            limit=pagination.limit,
            with_total=with_total,
        )
        return Page(
            items=cast(list[E], raw_items),
            total=total if with_total else 0,
            page=pagination.page,
            limit=pagination.limit,
        )
