"""
Contract tests shared by every ``RefreshTokenStore`` implementation.

The same scenarios run against the in-memory double, the SQLAlchemy store
and the Redis store (backed by ``fakeredis``).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from identity_service.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from identity_service.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from identity_service.services._shared.ports import InMemoryRefreshTokenStore, RefreshTokenRecord
from tests.factories.user import UserFactory


def _now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


@pytest.fixture(params=["memory", "sqlalchemy", "redis"])
def store(request, session):
    """Provide each store implementation in turn."""
    if request.param == "memory":
        return InMemoryRefreshTokenStore()
    if request.param == "sqlalchemy":
        return SQLAlchemyRefreshTokenStore()
    r = fakeredis.FakeRedis()
    r.flushall()
    return RedisRefreshTokenStore(r=r)


@pytest.fixture()
def user_id(session) -> int:
    return UserFactory().id


def _record(user_id: int, token: str, *, now: datetime | None = None, ttl=timedelta(days=7)):
    return RefreshTokenRecord.issue(user_id=user_id, token=token, now=now or _now(), ttl=ttl)


def test_save_then_find(store, user_id):
    rec = _record(user_id, "rt-1")
    store.save(rec)

    found = store.find_by_token("rt-1")
    assert found is not None
    assert found.id == rec.id
    assert found.user_id == user_id
    assert found.revoked is False
    assert found.expires_at.tzinfo is not None
    assert abs(found.expires_at - rec.expires_at) < timedelta(seconds=1)


def test_find_unknown_returns_none(store):
    assert store.find_by_token("nope") is None


def test_save_rejects_duplicate_token(store, user_id):
    store.save(_record(user_id, "rt-dup"))
    with pytest.raises(Exception):
        store.save(_record(user_id, "rt-dup"))


def test_revoke_is_conditional(store, user_id):
    store.save(_record(user_id, "rt-1"))
    now = _now()

    assert store.revoke("rt-1", now=now) is True
    assert store.revoke("rt-1", now=now) is False
    assert store.find_by_token("rt-1").revoked is True
    assert store.revoke("unknown", now=now) is False


def test_revoke_refuses_expired(store, user_id):
    issued = _now() - timedelta(days=2)
    store.save(_record(user_id, "rt-exp", now=issued, ttl=timedelta(days=1)))

    assert store.revoke("rt-exp", now=_now()) is False
    assert store.find_by_token("rt-exp").revoked is False


def test_revoke_all_for_user(store, user_id):
    other_id = UserFactory().id
    store.save(_record(user_id, "a"))
    store.save(_record(user_id, "b"))
    store.save(_record(other_id, "c"))
    store.revoke("a", now=_now())

    assert store.revoke_all_for_user(user_id) == 1
    assert store.revoke_all_for_user(user_id) == 0
    assert store.find_by_token("b").revoked is True
    assert store.find_by_token("c").revoked is False


def test_list_for_user_newest_first(store, user_id):
    now = _now()
    store.save(_record(user_id, "older", now=now - timedelta(minutes=5)))
    store.save(_record(user_id, "newer", now=now))

    assert [r.token for r in store.list_for_user(user_id)] == ["newer", "older"]


def test_revocation_is_one_way(store, user_id):
    store.save(_record(user_id, "rt-once"))
    assert store.revoke("rt-once", now=_now()) is True

    # Re-saving a fresh record under the same token must not resurrect it
    with pytest.raises(Exception):
        store.save(_record(user_id, "rt-once"))
    assert store.revoke_all_for_user(user_id) == 0
    assert store.revoke("rt-once", now=_now()) is False

    found = store.find_by_token("rt-once")
    assert found.revoked is True
    assert found.is_valid(_now()) is False


ISSUED = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
EXPIRES = ISSUED + timedelta(days=7)


@pytest.mark.parametrize(
    ("revoked", "now", "expected"),
    [
        (False, ISSUED, True),
        (False, EXPIRES - timedelta(microseconds=1), True),
        (False, EXPIRES, False),
        (False, EXPIRES + timedelta(days=1), False),
        (True, ISSUED, False),
        (True, EXPIRES, False),
        (True, EXPIRES + timedelta(days=1), False),
    ],
    ids=[
        "active",
        "just-before-expiry",
        "at-expiry",
        "expired",
        "revoked",
        "revoked-at-expiry",
        "revoked-and-expired",
    ],
)
def test_record_validity(revoked, now, expected):
    record = RefreshTokenRecord(
        id="r1",
        user_id=1,
        token="rt",
        expires_at=EXPIRES,
        revoked=revoked,
        created_at=ISSUED,
    )

    assert record.is_valid(now) is expected
    assert record.is_expired(now) is (now >= EXPIRES)
