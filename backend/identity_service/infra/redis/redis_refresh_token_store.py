# comments in English; reST docstrings
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime

import redis  # type: ignore[import-untyped]

from identity_service.models.base import as_utc
from identity_service.services._shared.ports import RefreshTokenRecord, RefreshTokenStore


def _b(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with atomic conditional revocation.

    Layout
    ------
    ``rt:{sha256(token)}``
        Hash with ``id``, ``user_id``, ``token``, ``expires_at``, ``revoked``
        and ``created_at`` (ISO-8601 UTC).
    ``rt:u:{user_id}``
        Set of token digests owned by the user.

    Keys carry no TTL; revoked and expired records are retained like rows.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _digest(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    @classmethod
    def _k(cls, token: str) -> str:
        return f"rt:{cls._digest(token)}"

    @staticmethod
    def _ku(user_id: int) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _from_hash(h: dict) -> RefreshTokenRecord:
        return RefreshTokenRecord(
            id=_b(h.get(b"id")),
            user_id=int(_b(h.get(b"user_id"), "0")),
            token=_b(h.get(b"token")),
            expires_at=as_utc(datetime.fromisoformat(_b(h.get(b"expires_at")))),
            revoked=_b(h.get(b"revoked"), "0") == "1",
            created_at=as_utc(datetime.fromisoformat(_b(h.get(b"created_at")))),
        )

    # -------------------- API ------------------------

    def save(self, record: RefreshTokenRecord) -> None:
        key = self._k(record.token)
        mapping = {
            "id": record.id,
            "user_id": str(record.user_id),
            "token": record.token,
            "expires_at": record.expires_at.isoformat(),
            "revoked": "1" if record.revoked else "0",
            "created_at": record.created_at.isoformat(),
        }
        # HSETNX on ``id`` rejects a second insert of the same token.
        if not self.r.hsetnx(key, "id", record.id):
            raise ValueError("Refresh token already stored.")
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(key, mapping=mapping)
        pipe.sadd(self._ku(record.user_id), self._digest(record.token))
        pipe.execute()

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        h = self.r.hgetall(self._k(token))
        if not h or b"token" not in h:
            return None
        return self._from_hash(h)

    def revoke(self, token: str, *, now: datetime) -> bool:
        """
        Flip ``revoked`` only if the record is currently valid.

        Uses WATCH/MULTI/EXEC; a concurrent writer aborts the EXEC and the
        check is re-run against the new state.
        """
        key = self._k(token)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    h = p.hgetall(key)
                    if not h or b"token" not in h:
                        p.unwatch()
                        return False
                    if not self._from_hash(h).is_valid(now):
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.execute()
                    return True
            except redis.WatchError:
                # Concurrent modification detected; retry loop
                continue

    def revoke_all_for_user(self, user_id: int) -> int:
        key_u = self._ku(user_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key_u)
                    digests = [_b(m) for m in p.smembers(key_u)]
                    keys = [f"rt:{d}" for d in digests]
                    if keys:
                        p.watch(*keys)
                    active = [k for k in keys if _b(p.hget(k, "revoked"), "1") == "0"]
                    if not active:
                        p.unwatch()
                        return 0
                    p.multi()
                    for k in active:
                        p.hset(k, "revoked", "1")
                    p.execute()
                    return len(active)
            except redis.WatchError:
                continue

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        records = []
        for member in self.r.smembers(self._ku(user_id)):
            h = self.r.hgetall(f"rt:{_b(member)}")
            if h and b"token" in h:
                records.append(self._from_hash(h))
        return sorted(records, key=lambda rec: rec.created_at, reverse=True)
