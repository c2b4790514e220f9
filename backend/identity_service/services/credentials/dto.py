"""
DTOs for CredentialService.

Data Transfer Objects (DTOs) isolate the service layer from ORM models,
ensuring clear input/output contracts and type safety.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# --------------------------------------------------------------------------- #
# Input DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: Login email (normalized to lowercase).
    :type email: str
    :param password: Raw password to be hashed by the model.
    :type password: str
    :param full_name: Display name.
    :type full_name: str
    :param phone: Optional phone number.
    :type phone: str | None
    :param role: Requested role (``owner`` or ``runner``).
    :type role: str | None
    :param referral_code: Optional code of the referring user.
    :type referral_code: str | None
    """

    email: str
    password: str
    full_name: str
    phone: str | None = None
    role: str | None = None
    referral_code: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for authentication.

    :param email: Login email.
    :type email: str
    :param password: Raw password.
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token rotation.

    :param refresh_token: Refresh token presented by the client.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class UpdateProfileIn:
    """
    Input DTO for a partial profile update. ``None`` or empty leaves a field
    unchanged.

    :param full_name: New display name.
    :type full_name: str | None
    :param phone: New phone number.
    :type phone: str | None
    :param avatar_url: New avatar reference.
    :type avatar_url: str | None
    """

    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Input DTO for changing the caller's password.

    :param current_password: Current password.
    :type current_password: str
    :param new_password: New password (raw).
    :type new_password: str
    """

    current_password: str
    new_password: str


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserView:
    """
    Output DTO representing public-safe user data. Never carries the hash.

    :param id: User identifier.
    :type id: int
    :param email: Email address.
    :type email: str
    :param phone: Optional phone.
    :type phone: str | None
    :param full_name: Display name.
    :type full_name: str
    :param role: Role value.
    :type role: str
    :param is_verified: Verification flag.
    :type is_verified: bool
    :param avatar_url: Optional avatar reference.
    :type avatar_url: str | None
    :param version: Concurrency version (exposed as ETag).
    :type version: int
    :param created_at: Creation timestamp.
    :type created_at: datetime
    :param updated_at: Last mutation timestamp.
    :type updated_at: datetime
    """

    id: int
    email: str
    phone: str | None
    full_name: str
    role: str
    is_verified: bool
    avatar_url: str | None
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Output DTO for register/login/refresh.

    :param access_token: Short-lived access token.
    :type access_token: str
    :param refresh_token: Single-use refresh token.
    :type refresh_token: str
    :param user: The authenticated user.
    :type user: UserView
    """

    access_token: str
    refresh_token: str
    user: UserView


@dataclass(frozen=True, slots=True)
class UserPage:
    """Page of users for admin listings."""

    items: list[UserView]
    total: int
    page: int
    limit: int


@dataclass(frozen=True, slots=True)
class UserStatsOut:
    """
    Aggregate user counts.

    :param total: Number of users.
    :type total: int
    :param by_role: Count per role value; every role is present.
    :type by_role: dict[str, int]
    """

    total: int
    by_role: dict[str, int] = field(default_factory=dict)
