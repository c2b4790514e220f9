# identity_service/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from identity_service.core import errors as api_errors
from identity_service.models.base import utcnow
from identity_service.repositories.base import Pagination
from identity_service.services._shared.errors import (
    AlreadyExistsError,
    ConflictError,
    InternalError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)
from identity_service.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (auth, request ids, etc.).

    :param actor_id: Authenticated user identifier.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Offer shared validation helpers (pagination, clock).
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Domain rules live in the models.
    """

    # ---- Configuration defaults (override per subclass if needed) ----
    DEFAULT_READ_ISOLATION = "READ COMMITTED"
    MAX_PAGE_LIMIT = 100

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

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(self, *, page: int, limit: int) -> Pagination:
        """
        Build a Pagination value object with clamping.

        ``page`` is clamped to ``>= 1`` and ``limit`` to ``[1, MAX_PAGE_LIMIT]``.

        :param page: 1-based page number.
        :type page: int
        :param limit: Page size.
        :type limit: int
        :returns: Pagination instance.
        :rtype: Pagination
        """
        page = max(1, int(page))
        limit = min(max(1, int(limit)), self.MAX_PAGE_LIMIT)
        return Pagination(page=page, limit=limit, sort=[])

    def now_utc(self) -> datetime:
        """Return the service clock (timezone-aware UTC)."""
        return utcnow()

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ValidationError):
            # → 422 Unprocessable Entity
            details = {"field": exc.field} if exc.field else None
            return api_errors.UnprocessableEntity(str(exc), details=details)

        if isinstance(exc, AlreadyExistsError):
            # → 409 Conflict (already_exists)
            return api_errors.AlreadyExists(str(exc))

        if isinstance(exc, UnauthorizedError):
            # → 401 Unauthorized
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, NotFoundError):
            # → 404 Not Found
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            # → 409 Conflict
            return api_errors.Conflict(str(exc))

        if isinstance(exc, InternalError):
            # → 500, opaque message
            return api_errors.InternalServerError()

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
