"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They are the stable contract between repositories, domain
models, application services and the transport layer.

The translation to HTTP responses (RFC 7807) is handled by
``identity_service/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, *markers: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name (``uq_users_email``) while SQLite
    reports the column (``users.email``); pass every marker that identifies
    the constraint on the supported dialects.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    markers : str
        Constraint names or ``table.column`` fragments to look for.

    Returns
    -------
    bool
        True if the driver message mentions any of the markers.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return any(marker.lower() in message for marker in markers)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    - ``BaseService.translate_exceptions`` maps them to ``APIError``.
    """


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """
    Raised when caller input violates a field rule. Never retried.

    :param message: Human-readable description of the violated rule.
    :type message: str
    :param field: Offending field, when known.
    :type field: str | None
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


@dataclass(slots=True)
class AlreadyExistsError(ServiceError):
    """
    Raised on a uniqueness violation (e.g. email already registered).

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param field: Field carrying the unique value.
    :type field: str
    """

    entity: str
    field: str

    def __str__(self) -> str:
        return f"{self.entity} with this {self.field} already exists"


class UnauthorizedError(ServiceError):
    """
    Raised on bad credentials or an unusable token.

    The message is generic on purpose and must be identical for every cause
    of a given operation (unknown email vs. wrong password).
    """

    def __init__(self, message: str = "unauthorized") -> None:
        super().__init__(message)


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when an optimistic-concurrency write loses the race.

    Callers should reload and retry at a higher level; services never retry.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class InternalError(ServiceError):
    """
    Raised when hashing, signing or storage fails for reasons unrelated to
    caller input. The message is logged, never returned to clients.
    """
