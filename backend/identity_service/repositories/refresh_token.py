"""Refresh-token repository built on single-statement conditional updates."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from identity_service.models.refresh_token import RefreshToken
from identity_service.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`."""

    model = RefreshToken

    def get_by_token(self, token: str) -> RefreshToken | None:
        """Fetch a record by its token string.

        :param token: Signed token as presented by the client.
        :type token: str
        :returns: Record or ``None``.
        :rtype: RefreshToken | None
        """
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def revoke_if_active(self, token: str, *, now: datetime) -> bool:
        """Revoke a token only if it is currently active.

        Emits ``UPDATE ... WHERE token = :t AND revoked = false AND
        expires_at > :now``. Of two concurrent callers at most one sees a
        matched row.

        :param token: Token to revoke.
        :type token: str
        :param now: Reference time for the expiry check.
        :type now: datetime
        :returns: ``True`` when this call flipped the flag.
        :rtype: bool
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token == token,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def revoke_all_for_user(self, user_id: int) -> int:
        """Revoke every non-revoked token of a user in one statement.

        :param user_id: Owning user.
        :type user_id: int
        :returns: Number of rows flipped.
        :rtype: int
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def list_for_user(self, user_id: int) -> Sequence[RefreshToken]:
        """Return a user's tokens, newest first."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at.desc(), RefreshToken.id)
        )
        return list(self.session.execute(stmt).scalars().all())
