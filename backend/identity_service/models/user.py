"""User aggregate: identity, credentials and the optimistic-concurrency fence."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from identity_service.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, utcnow

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
PHONE_RE = re.compile(r"^\+?[0-9]{7,15}$")
MIN_PASSWORD_LENGTH = 8


class UserRole(str, Enum):
    """Closed set of platform roles, aligned with the ``users.role`` check."""

    OWNER = "owner"
    RUNNER = "runner"
    ADMIN = "admin"


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity and profile of a platform user.

    Every mutation goes through a domain method that bumps ``version`` exactly
    once. The mapper uses ``version`` as its version counter, so each flush of
    a dirty user emits ``UPDATE ... WHERE id = :id AND version = :loaded``.
    Zero matched rows mean another writer committed first.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    phone : str | None
        Optional phone number (``+`` and 7-15 digits).
    password_hash : str
        Hashed password (write-only setter via ``password``).
    full_name : str
        Display name, never empty.
    role : UserRole
        Access-control role.
    is_verified : bool
        Verification flag. ``False`` at creation and after a ban.
    avatar_url : str | None
        Optional avatar reference.
    version : int
        Starts at 1; incremented once per mutation.
    created_at : datetime
        Creation timestamp (from mixin).
    updated_at : datetime
        Refreshed on every mutation (from mixin).
    """

    __tablename__ = "users"

    # Columns
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            create_constraint=True,
            validate_strings=True,
            values_callable=lambda members: [m.value for m in members],
            length=16,
        ),
        nullable=False,
        default=UserRole.RUNNER,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_created_at", "created_at"),
        Index("ix_users_role", "role"),
    )

    # The application owns the counter; SQLAlchemy only adds the WHERE fence.
    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    # -------------------- Construction --------------------
    @classmethod
    def create(
        cls,
        *,
        email: str,
        password: str,
        full_name: str,
        phone: str | None = None,
        role: UserRole | str = UserRole.RUNNER,
    ) -> User:
        """
        Build a validated, unverified user at version 1.

        :param email: Login email (normalized by the validator).
        :type email: str
        :param password: Plain text password, hashed immediately.
        :type password: str
        :param full_name: Display name.
        :type full_name: str
        :param phone: Optional phone number.
        :type phone: str | None
        :param role: One of :class:`UserRole`.
        :type role: UserRole | str
        :returns: Transient user ready to be added to a session.
        :rtype: User
        :raises ValueError: If any field violates its rule.
        """
        now = utcnow()
        user = cls(
            email=email,
            full_name=full_name,
            phone=phone,
            role=role,
            is_verified=False,
            version=1,
            created_at=now,
            updated_at=now,
        )
        user.password = password
        return user

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        :raises ValueError: If the password is shorter than eight characters.
        """
        if not isinstance(raw, str) or len(raw) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash or not isinstance(raw, str):
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Mutations --------------------
    def increment_version(self) -> int:
        """
        Advance the concurrency fence and refresh ``updated_at``.

        :returns: The new version.
        :rtype: int
        """
        self.version = (self.version or 0) + 1
        self.updated_at = utcnow()
        return self.version

    def update_profile(
        self,
        *,
        full_name: str | None = None,
        phone: str | None = None,
        avatar_url: str | None = None,
    ) -> None:
        """
        Apply a partial profile update.

        Empty or missing values leave the field unchanged. The version moves
        once regardless of how many fields were provided.

        :param full_name: New display name.
        :type full_name: str | None
        :param phone: New phone number.
        :type phone: str | None
        :param avatar_url: New avatar reference.
        :type avatar_url: str | None
        :raises ValueError: If a provided value is invalid.
        """
        if full_name:
            self.full_name = full_name
        if phone:
            self.phone = phone
        if avatar_url:
            self.avatar_url = avatar_url
        self.increment_version()

    def change_password(self, raw: str) -> None:
        """Replace the password hash and bump the version."""
        self.password = raw
        self.increment_version()

    def verify(self) -> None:
        """Mark the account as verified."""
        self.is_verified = True
        self.increment_version()

    def deactivate(self) -> None:
        """Clear the verification flag (ban)."""
        self.is_verified = False
        self.increment_version()

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Email format is invalid.")
        return v

    @validates("phone")
    def _normalize_phone(self, key: str, value: str | None) -> str | None:
        """Store blank phones as ``NULL``; otherwise enforce the format."""
        if value is None:
            return None
        v = str(value).strip()
        if not v:
            return None
        if not PHONE_RE.match(v):
            raise ValueError("Phone format is invalid.")
        return v

    @validates("full_name")
    def _normalize_full_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Full name is required.")
        v = value.strip()
        if len(v) > 100:
            raise ValueError("Full name must be at most 100 characters.")
        return v

    @validates("role")
    def _coerce_role(self, key: str, value: UserRole | str) -> UserRole:
        if isinstance(value, UserRole):
            return value
        try:
            return UserRole(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(r.value for r in UserRole)
            raise ValueError(f"Role must be one of: {allowed}.") from exc

    @validates("avatar_url")
    def _normalize_avatar(self, key: str, value: str | None) -> str | None:
        if value is None:
            return None
        v = str(value).strip()
        if len(v) > 512:
            raise ValueError("Avatar URL must be at most 512 characters.")
        return v or None
