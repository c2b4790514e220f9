"""HTTP tests for the ``/api/v1/admin`` blueprint."""

from __future__ import annotations

from datetime import timedelta

from identity_service.models.base import utcnow
from identity_service.models.user import UserRole
from tests.factories.user import AdminFactory, UserFactory
from tests.helpers.auth import auth_headers

BASE = "/api/v1/admin"


def test_non_admin_is_forbidden(client):
    runner = UserFactory()

    resp = client.get(f"{BASE}/users", headers=auth_headers(runner))

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "forbidden"


def test_anonymous_is_unauthorized(client):
    assert client.get(f"{BASE}/users").status_code == 401


def test_list_users_newest_first_with_meta(client):
    admin = AdminFactory(created_at=utcnow() - timedelta(days=3))
    older = UserFactory(created_at=utcnow() - timedelta(days=1))
    newer = UserFactory(created_at=utcnow())

    resp = client.get(f"{BASE}/users?page=1&limit=2", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.get_json()
    assert [u["id"] for u in body["data"]] == [newer.id, older.id]
    assert body["meta"] == {"total": 3, "page": 1, "limit": 2}


def test_list_users_lenient_pagination(client):
    admin = AdminFactory()

    bad = client.get(f"{BASE}/users?page=abc&limit=-5", headers=auth_headers(admin))
    huge = client.get(f"{BASE}/users?limit=5000", headers=auth_headers(admin))

    assert bad.get_json()["meta"]["page"] == 1
    assert bad.get_json()["meta"]["limit"] == 20
    assert huge.get_json()["meta"]["limit"] == 100


def test_get_user_and_missing_user(client):
    admin = AdminFactory()
    target = UserFactory()

    found = client.get(f"{BASE}/users/{target.id}", headers=auth_headers(admin))
    missing = client.get(f"{BASE}/users/999999", headers=auth_headers(admin))

    assert found.status_code == 200
    assert found.get_json()["data"]["id"] == target.id
    assert found.headers["ETag"] == '"v1"'
    assert missing.status_code == 404


def test_ban_revokes_target_sessions(client):
    admin = AdminFactory()
    client.post(
        "/api/v1/auth/register",
        json={"email": "victim@x.com", "password": "longpass1", "full_name": "Victim"},
    )
    login = client.post(
        "/api/v1/auth/login", json={"email": "victim@x.com", "password": "longpass1"}
    ).get_json()["data"]
    target_id = login["user"]["id"]

    resp = client.post(f"{BASE}/users/{target_id}/ban", headers=auth_headers(admin))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["is_verified"] is False
    assert data["version"] == 2
    again = client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert again.status_code == 401


def test_verify_user(client):
    admin = AdminFactory()
    target = UserFactory()

    resp = client.post(f"{BASE}/users/{target.id}/verify", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.get_json()["data"]["is_verified"] is True
    assert resp.headers["ETag"] == '"v2"'


def test_user_stats(client):
    admin = AdminFactory()
    UserFactory.create_batch(2)
    UserFactory(role=UserRole.OWNER)

    resp = client.get(f"{BASE}/stats/users", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {
        "total": 4,
        "by_role": {"owner": 1, "runner": 2, "admin": 1},
    }
