"""User repository: lookups, version-fenced updates and admin projections."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.orm.exc import StaleDataError

from identity_service.models.user import User, UserRole
from identity_service.repositories.base import BaseRepository, Page, Pagination
from identity_service.services._shared.errors import ConflictError


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    This repository NEVER handles tokens; it only reads and writes users.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Expose sortable fields for safe public sorting."""
        return {
            "id": User.id,
            "email": User.email,
            "created_at": User.created_at,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists.

        :param email: Email address to normalise and search.
        :type email: str
        :returns: ``True`` if a row is found; otherwise ``False``.
        :rtype: bool
        """
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Conditional write ----------------------------

    def update(self, user: User) -> User:
        """Flush a mutated user under its version fence.

        The mapper's version counter turns the flush into a single
        ``UPDATE users SET ..., version = :new WHERE id = :id AND version = :old``.
        When that matches zero rows SQLAlchemy raises ``StaleDataError``.

        :param user: Persistent user already mutated through a domain method.
        :type user: User
        :returns: The same instance.
        :rtype: User
        :raises ConflictError: If another writer committed a newer version.
        """
        # Read before flushing; a failed flush leaves the session unusable
        stale_version = user.version - 1
        try:
            self.flush()
        except StaleDataError as exc:
            raise ConflictError("User", f"version {stale_version} is stale") from exc
        return user

    # ---------------------------- Admin projections ----------------------------

    def paginate_recent(self, *, page: int, limit: int) -> Page[User]:
        """Return users newest first.

        :param page: 1-based page.
        :type page: int
        :param limit: Page size.
        :type limit: int
        :returns: Page of users ordered by ``created_at`` descending.
        :rtype: Page[User]
        """
        return self.paginate(Pagination(page=page, limit=limit, sort=["-created_at"]))

    def count_by_role(self) -> dict[UserRole, int]:
        """Count users grouped by role.

        :returns: Mapping of role to count. Roles without users are absent.
        :rtype: dict[UserRole, int]
        """
        stmt = select(User.role, func.count(User.id)).group_by(User.role)
        return {UserRole(role): int(count) for role, count in self.session.execute(stmt).all()}
