"""
CredentialService
=================

Orchestrator of the credential lifecycle:

- Registration and authentication (password hashing lives on the model)
- Access/refresh token issuance and single-use refresh rotation
- Profile reads and version-fenced mutations (update, password, verify, ban)
- Admin reads (paginated listing, lookup, counts by role)

Token signing and refresh-token persistence are reached through ports so the
same orchestration runs against JWT/SQL/Redis adapters or in-memory doubles.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import NoReturn

from sqlalchemy.exc import IntegrityError

from identity_service.models.base import as_utc
from identity_service.models.user import MIN_PASSWORD_LENGTH, User, UserRole
from identity_service.services._shared.base import BaseService, ServiceContext
from identity_service.services._shared.errors import (
    AlreadyExistsError,
    ConflictError,
    InternalError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
    violates,
)
from identity_service.services._shared.ports import (
    REFRESH_TOKEN_TYPE,
    RefreshTokenRecord,
    RefreshTokenStore,
    TokenSigner,
    TokenVerificationError,
)
from identity_service.services.credentials.dto import (
    AuthResult,
    ChangePasswordIn,
    LoginIn,
    RefreshIn,
    RegisterIn,
    UpdateProfileIn,
    UserPage,
    UserStatsOut,
    UserView,
)
from identity_service.services.referrals.service import ReferralService

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid email or password"
INVALID_REFRESH_TOKEN = "invalid refresh token"
DEFAULT_REFRESH_TTL = timedelta(days=7)

# Roles a caller may pick for themselves at registration
SELF_SERVICE_ROLES = (UserRole.OWNER, UserRole.RUNNER)


def to_user_view(user: User) -> UserView:
    """Project a loaded :class:`User` onto its public DTO."""
    return UserView(
        id=user.id,
        email=user.email,
        phone=user.phone,
        full_name=user.full_name,
        role=UserRole(user.role).value,
        is_verified=bool(user.is_verified),
        avatar_url=user.avatar_url,
        version=user.version,
        created_at=as_utc(user.created_at),
        updated_at=as_utc(user.updated_at),
    )


class CredentialService(BaseService):
    """
    Application service for users and their tokens.

    :param signer: Token signer port.
    :type signer: TokenSigner
    :param store: Refresh token store port.
    :type store: RefreshTokenStore
    :param referrals: Optional referral collaborator used at registration.
    :type referrals: ReferralService | None
    :param refresh_ttl: Lifetime of persisted refresh records.
    :type refresh_ttl: timedelta
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        store: RefreshTokenStore,
        referrals: ReferralService | None = None,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.signer = signer
        self.store = store
        self.referrals = referrals
        self.refresh_ttl = refresh_ttl

    # --------------------------------------------------------------------- #
    # Registration & authentication
    # --------------------------------------------------------------------- #

    def register(self, dto: RegisterIn) -> AuthResult:
        """
        Register a new user and open a first session.

        The advisory email check gives a fast answer; the unique constraint on
        ``users.email`` is the authority when two registrations race.

        Only ``owner`` and ``runner`` (the default) can be picked here.
        ``admin`` is granted through ``flask users create-admin``, and a
        request for it, like any unknown role such as ``shop``, is rejected
        on the ``role`` field.

        :param dto: Registration input.
        :type dto: RegisterIn
        :returns: Token pair and the created user.
        :rtype: AuthResult
        :raises ValidationError: On a short password, a role outside
            ``SELF_SERVICE_ROLES`` or another invalid field.
        :raises AlreadyExistsError: If the email is already registered.
        :raises InternalError: If token issuance or persistence fails.
        """
        if not dto.password or len(dto.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )
        role = self._self_service_role(dto.role)

        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_email(dto.email):
                    raise AlreadyExistsError("User", "email")
                try:
                    user = User.create(
                        email=dto.email,
                        password=dto.password,
                        full_name=dto.full_name,
                        phone=dto.phone,
                        role=role,
                    )
                except ValueError as exc:
                    raise ValidationError(str(exc)) from exc
                uow.users.add(user)
                view = to_user_view(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email", "users.email"):
                raise AlreadyExistsError("User", "email") from exc
            raise  # unknown integrity error -> bubble up

        log.info(
            "User registered: role=%s",
            view.role,
            extra={"event": "user.registered", "user_id": view.id},
        )
        access, refresh = self._issue_pair(view)

        if dto.referral_code and self.referrals is not None:
            self.referrals.process_referral(view.id, dto.referral_code)

        return AuthResult(access_token=access, refresh_token=refresh, user=view)

    def login(self, dto: LoginIn) -> AuthResult:
        """
        Authenticate by email and password and open a new session.

        Existing sessions are kept. Unknown email and wrong password fail
        with the same message.

        :param dto: Credentials.
        :type dto: LoginIn
        :returns: Token pair and the user.
        :rtype: AuthResult
        :raises UnauthorizedError: When credentials are invalid.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(dto.email) if dto.email else None
            if user is None or not user.verify_password(dto.password):
                log.info("Login failed", extra={"event": "user.login_failed"})
                raise UnauthorizedError(INVALID_CREDENTIALS)
            view = to_user_view(user)

        access, refresh = self._issue_pair(view)
        return AuthResult(access_token=access, refresh_token=refresh, user=view)

    def refresh_token(self, dto: RefreshIn) -> AuthResult:
        """
        Exchange a refresh token for a new pair, revoking the presented one.

        The presented token must verify, carry ``type == "refresh"``, exist in
        the store, be valid now, and be revoked by *this* call. Of two
        concurrent rotations of the same token only one gets past the
        conditional revoke.

        :param dto: Refresh input.
        :type dto: RefreshIn
        :returns: New token pair and the user.
        :rtype: AuthResult
        :raises UnauthorizedError: For every rejection cause.
        """
        token = dto.refresh_token
        now = self.now_utc()

        try:
            claims = self.signer.verify(token)
        except TokenVerificationError:
            self._reject_refresh("verification failed")

        if claims.get("type") != REFRESH_TOKEN_TYPE:
            self._reject_refresh("wrong token type")

        with self._internal("refresh token lookup"):
            record = self.store.find_by_token(token)
        if record is None:
            self._reject_refresh("unknown token")
        if str(claims.get("sub")) != str(record.user_id):
            self._reject_refresh("subject mismatch", user_id=record.user_id)
        if not record.is_valid(now):
            self._reject_refresh("revoked or expired", user_id=record.user_id)

        with self._internal("refresh token revoke"):
            won = self.store.revoke(token, now=now)
        if not won:
            self._reject_refresh("lost rotation race", user_id=record.user_id)

        with self.ro_uow() as uow:
            user = uow.users.get(record.user_id)
            if user is None:
                self._reject_refresh("user missing", user_id=record.user_id)
            view = to_user_view(user)

        access, refresh = self._issue_pair(view)
        log.info("Token refreshed", extra={"event": "token.refreshed", "user_id": view.id})
        return AuthResult(access_token=access, refresh_token=refresh, user=view)

    def logout(self, user_id: int) -> None:
        """
        Revoke every refresh token of the user. Idempotent.

        :param user_id: Caller id.
        :type user_id: int
        """
        with self._internal("logout"):
            revoked = self.store.revoke_all_for_user(user_id)
        log.info(
            "User logged out: revoked=%s",
            revoked,
            extra={"event": "user.logout", "user_id": user_id},
        )

    # --------------------------------------------------------------------- #
    # Profile
    # --------------------------------------------------------------------- #

    def get_profile(self, user_id: int) -> UserView:
        """
        Retrieve the caller's profile.

        :raises NotFoundError: If user does not exist.
        """
        return self.get_user_by_id(user_id)

    def update_profile(
        self,
        user_id: int,
        dto: UpdateProfileIn,
        *,
        expected_version: int | None = None,
    ) -> UserView:
        """
        Apply a partial profile update under the version fence.

        :param user_id: User identifier.
        :type user_id: int
        :param dto: Fields to change.
        :type dto: UpdateProfileIn
        :param expected_version: Version the caller last saw (``If-Match``).
        :type expected_version: int | None
        :returns: Updated user.
        :rtype: UserView
        :raises NotFoundError: When user not found.
        :raises ValidationError: When a provided value is invalid.
        :raises ConflictError: When the caller's version is stale or another
            writer committed first.
        """

        def _apply(user: User) -> None:
            if expected_version is not None and expected_version != user.version:
                raise ConflictError(
                    "User", f"expected version {expected_version}, current is {user.version}"
                )
            user.update_profile(
                full_name=dto.full_name,
                phone=dto.phone,
                avatar_url=dto.avatar_url,
            )

        view = self._mutate(user_id, _apply)
        log.info(
            "Profile updated: version=%s",
            view.version,
            extra={"event": "user.profile_updated", "user_id": user_id},
        )
        return view

    def change_password(self, user_id: int, dto: ChangePasswordIn) -> UserView:
        """
        Replace the password after checking the current one.

        All refresh tokens are revoked afterwards (best-effort).

        :raises UnauthorizedError: When the current password is wrong.
        :raises ValidationError: When the new password is too short.
        """

        def _apply(user: User) -> None:
            if not user.verify_password(dto.current_password):
                raise UnauthorizedError("current password is incorrect")
            try:
                user.change_password(dto.new_password)
            except ValueError as exc:
                raise ValidationError(str(exc), field="new_password") from exc

        view = self._mutate(user_id, _apply)
        log.info("Password changed", extra={"event": "user.password_changed", "user_id": user_id})
        self._revoke_all_best_effort(user_id, event="user.password_revoke_failed")
        return view

    # --------------------------------------------------------------------- #
    # Moderation (admin)
    # --------------------------------------------------------------------- #

    def verify_user(self, user_id: int) -> UserView:
        """Mark a user as verified."""
        view = self._mutate(user_id, lambda user: user.verify())
        log.info("User verified", extra={"event": "user.verified", "user_id": user_id})
        return view

    def ban_user(self, user_id: int) -> UserView:
        """
        Deactivate a user and revoke their refresh tokens.

        The deactivation is version-fenced. Token revocation runs afterwards
        and its failure is logged, not raised.

        :raises NotFoundError: When user not found.
        :raises ConflictError: When another writer committed first.
        """
        view = self._mutate(user_id, lambda user: user.deactivate())
        log.info("User banned", extra={"event": "user.banned", "user_id": user_id})
        self._revoke_all_best_effort(user_id, event="user.ban_revoke_failed")
        return view

    # --------------------------------------------------------------------- #
    # Admin reads
    # --------------------------------------------------------------------- #

    def list_users(self, page: int = 1, limit: int = 20) -> UserPage:
        """
        List users newest first.

        :param page: 1-based page (clamped to ``>= 1``).
        :type page: int
        :param limit: Page size (clamped to ``[1, 100]``).
        :type limit: int
        :returns: Page of users.
        :rtype: UserPage
        """
        pagination = self.ensure_pagination(page=page, limit=limit)
        with self.ro_uow() as uow:
            result = uow.users.paginate_recent(page=pagination.page, limit=pagination.limit)
            return UserPage(
                items=[to_user_view(u) for u in result.items],
                total=result.total,
                page=result.page,
                limit=result.limit,
            )

    def get_user_by_id(self, user_id: int) -> UserView:
        """
        Retrieve a user by identifier.

        :raises NotFoundError: If user does not exist.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return to_user_view(user)

    def get_user_stats(self) -> UserStatsOut:
        """Count users per role; roles without users report zero."""
        with self.ro_uow() as uow:
            counts = uow.users.count_by_role()
        by_role = {role.value: counts.get(role, 0) for role in UserRole}
        return UserStatsOut(total=sum(by_role.values()), by_role=by_role)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _mutate(self, user_id: int, apply: Callable[[User], None]) -> UserView:
        """
        Load, mutate through a domain method and flush under the fence.

        :raises NotFoundError: When user not found.
        :raises ValidationError: When the model rejects a value.
        :raises ConflictError: When the conditional update matched no row.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            try:
                apply(user)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            uow.users.update(user)
            return to_user_view(user)

    def _self_service_role(self, raw: str | None) -> UserRole:
        if raw is None or not str(raw).strip():
            return UserRole.RUNNER
        try:
            role = UserRole(str(raw).strip().lower())
        except ValueError:
            role = None
        if role not in SELF_SERVICE_ROLES:
            allowed = ", ".join(r.value for r in SELF_SERVICE_ROLES)
            raise ValidationError(f"role must be one of: {allowed}", field="role")
        return role

    def _issue_pair(self, user: UserView) -> tuple[str, str]:
        """Issue an access/refresh pair and persist the refresh record."""
        with self._internal("token issuance"):
            access = self.signer.issue_access(user.id, user.email, user.role)
            refresh = self.signer.issue_refresh(user.id)
            self.store.save(
                RefreshTokenRecord.issue(
                    user_id=user.id, token=refresh, now=self.now_utc(), ttl=self.refresh_ttl
                )
            )
        return access, refresh

    def _reject_refresh(self, reason: str, *, user_id: int | None = None) -> NoReturn:
        log.info(
            "Refresh rejected: %s",
            reason,
            extra={"event": "token.refresh_rejected", "user_id": user_id},
        )
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)

    def _revoke_all_best_effort(self, user_id: int, *, event: str) -> None:
        try:
            self.store.revoke_all_for_user(user_id)
        except Exception:
            log.exception(
                "Failed to revoke refresh tokens",
                extra={"event": event, "user_id": user_id},
            )

    @contextmanager
    def _internal(self, action: str) -> Iterator[None]:
        """Re-raise non-service failures of ports as :class:`InternalError`."""
        try:
            yield
        except ServiceError:
            raise
        except Exception as exc:
            raise InternalError(f"{action} failed") from exc
