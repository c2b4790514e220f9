from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Store-agnostic snapshot of a persisted refresh token.

    :ivar id: Opaque record identifier.
    :ivar user_id: Owner user id.
    :ivar token: Signed token string (lookup key).
    :ivar expires_at: Absolute expiration (UTC, timezone-aware).
    :ivar revoked: Whether the token has been revoked.
    :ivar created_at: Issue timestamp (UTC, timezone-aware).
    """

    id: str
    user_id: int
    token: str
    expires_at: datetime
    revoked: bool
    created_at: datetime

    @classmethod
    def issue(
        cls, *, user_id: int, token: str, now: datetime, ttl: timedelta
    ) -> RefreshTokenRecord:
        """Build a fresh, non-revoked record expiring ``ttl`` after ``now``."""
        return cls(
            id=uuid4().hex,
            user_id=user_id,
            token=token,
            expires_at=now + ttl,
            revoked=False,
            created_at=now,
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_valid(self, now: datetime) -> bool:
        """A token is usable iff it is not revoked and ``now < expires_at``."""
        return not self.revoked and not self.is_expired(now)


class RefreshTokenStore(Protocol):
    """
    Durable mapping from token string to :class:`RefreshTokenRecord`.

    Revocation is one-way. ``revoke`` MUST be a single atomic conditional
    write so that two concurrent rotations of the same token cannot both win.
    """

    def save(self, record: RefreshTokenRecord) -> None:
        """Insert a new record."""

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        """Return the record for ``token`` or ``None``."""

    def revoke(self, token: str, *, now: datetime) -> bool:
        """
        Revoke ``token`` only if it is currently valid at ``now``.

        :returns: ``True`` if this call performed the revocation.
        """

    def revoke_all_for_user(self, user_id: int) -> int:
        """
        Revoke every non-revoked token of a user.

        :returns: Number of records affected.
        """

    def list_for_user(self, user_id: int) -> Iterable[RefreshTokenRecord]:
        """List a user's records, newest first."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       A single lock makes every operation atomic; used by unit tests.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, RefreshTokenRecord] = {}
        self._by_user: dict[int, list[str]] = {}
        self._lock = threading.Lock()

    def save(self, record: RefreshTokenRecord) -> None:
        with self._lock:
            if record.token in self._by_token:
                raise ValueError("Refresh token already stored.")
            self._by_token[record.token] = record
            self._by_user.setdefault(record.user_id, []).append(record.token)

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_token.get(token)

    def revoke(self, token: str, *, now: datetime) -> bool:
        with self._lock:
            record = self._by_token.get(token)
            if record is None or not record.is_valid(now):
                return False
            self._by_token[token] = replace(record, revoked=True)
            return True

    def revoke_all_for_user(self, user_id: int) -> int:
        with self._lock:
            count = 0
            for token in self._by_user.get(user_id, []):
                record = self._by_token[token]
                if not record.revoked:
                    self._by_token[token] = replace(record, revoked=True)
                    count += 1
            return count

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        with self._lock:
            records = [self._by_token[t] for t in self._by_user.get(user_id, [])]
        return sorted(records, key=lambda rec: rec.created_at, reverse=True)
