"""HTTP tests for the ``/api/v1/auth`` blueprint."""

from __future__ import annotations

import pytest

from tests.factories.user import UserFactory
from tests.helpers.auth import auth_headers, expired_headers, refresh_headers

BASE = "/api/v1/auth"


def _register(client, email="a@x.com", password="longpass1", **extra):
    body = {"email": email, "password": password, "full_name": "User A", **extra}
    return client.post(f"{BASE}/register", json=body)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestRegisterAndLogin:
    def test_register_returns_pair_user_and_etag(self, client):
        resp = _register(client)

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["token_type"] == "bearer"
        assert data["access_token"] and data["refresh_token"]
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["version"] == 1
        assert data["user"]["is_verified"] is False
        assert "password_hash" not in data["user"]
        assert resp.headers["ETag"] == '"v1"'

    def test_duplicate_email_is_conflict(self, client):
        _register(client)

        resp = _register(client, email="A@X.com")

        assert resp.status_code == 409
        body = resp.get_json()
        assert body["code"] == "already_exists"
        assert resp.mimetype == "application/problem+json"

    def test_short_password_is_unprocessable(self, client):
        resp = _register(client, password="short")

        assert resp.status_code == 422
        assert resp.get_json()["details"] == {"field": "password"}

    def test_malformed_payload_is_unprocessable(self, client):
        resp = client.post(f"{BASE}/register", json={"email": "nope"})

        assert resp.status_code == 422
        errors = resp.get_json()["details"]["errors"]
        assert {"email", "password", "full_name"} <= set(errors)

    def test_admin_role_cannot_be_self_assigned(self, client):
        resp = _register(client, role="admin")

        assert resp.status_code == 422
        assert resp.get_json()["details"] == {"field": "role"}

    def test_login_failures_share_one_message(self, client):
        UserFactory(email="known@x.com")

        wrong = client.post(f"{BASE}/login", json={"email": "known@x.com", "password": "badpass99"})
        unknown = client.post(f"{BASE}/login", json={"email": "ghost@x.com", "password": "x"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json()["detail"] == unknown.get_json()["detail"]

    def test_login_success(self, client):
        UserFactory(email="known@x.com")

        resp = client.post(f"{BASE}/login", json={"email": "known@x.com", "password": "longpass1"})

        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["email"] == "known@x.com"


class TestRefreshAndLogout:
    def test_rotation_and_replay(self, client):
        pair = _register(client).get_json()["data"]

        first = client.post(f"{BASE}/refresh", json={"refresh_token": pair["refresh_token"]})
        replay = client.post(f"{BASE}/refresh", json={"refresh_token": pair["refresh_token"]})

        assert first.status_code == 200
        assert first.get_json()["data"]["refresh_token"] != pair["refresh_token"]
        assert replay.status_code == 401

    def test_access_token_cannot_refresh(self, client):
        pair = _register(client).get_json()["data"]

        resp = client.post(f"{BASE}/refresh", json={"refresh_token": pair["access_token"]})

        assert resp.status_code == 401

    def test_logout_revokes_all_refresh_tokens(self, client):
        pair = _register(client).get_json()["data"]
        second = client.post(
            f"{BASE}/login", json={"email": "a@x.com", "password": "longpass1"}
        ).get_json()["data"]

        resp = client.post(f"{BASE}/logout", headers=_bearer(pair["access_token"]))

        assert resp.status_code == 204
        for token in (pair["refresh_token"], second["refresh_token"]):
            again = client.post(f"{BASE}/refresh", json={"refresh_token": token})
            assert again.status_code == 401

    def test_logout_requires_token(self, client):
        resp = client.post(f"{BASE}/logout")

        assert resp.status_code == 401
        assert resp.get_json()["code"] == "unauthorized"


class TestProfile:
    def test_get_profile_with_etag(self, client):
        user = UserFactory(full_name="Jane Roe")

        resp = client.get(f"{BASE}/profile", headers=auth_headers(user))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["full_name"] == "Jane Roe"
        assert resp.headers["ETag"] == '"v1"'

    @pytest.mark.parametrize("headers_for", [expired_headers, refresh_headers])
    def test_profile_rejects_unusable_tokens(self, client, headers_for):
        user = UserFactory()

        resp = client.get(f"{BASE}/profile", headers=headers_for(user))

        assert resp.status_code == 401
        assert resp.mimetype == "application/problem+json"

    def test_update_profile_bumps_version(self, client):
        user = UserFactory()

        resp = client.put(
            f"{BASE}/profile",
            json={"full_name": "Renamed", "phone": "+34600111222"},
            headers=auth_headers(user),
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert (data["full_name"], data["phone"], data["version"]) == ("Renamed", "+34600111222", 2)
        assert resp.headers["ETag"] == '"v2"'

    def test_update_profile_with_matching_if_match(self, client):
        user = UserFactory()
        headers = {**auth_headers(user), "If-Match": '"v1"'}

        resp = client.put(f"{BASE}/profile", json={"full_name": "Fenced"}, headers=headers)

        assert resp.status_code == 200

    def test_update_profile_with_stale_if_match_is_conflict(self, client):
        user = UserFactory()
        headers = auth_headers(user)
        client.put(f"{BASE}/profile", json={"full_name": "First"}, headers=headers)

        resp = client.put(
            f"{BASE}/profile",
            json={"full_name": "Second"},
            headers={**headers, "If-Match": '"v1"'},
        )

        assert resp.status_code == 409
        assert resp.get_json()["code"] == "conflict"

    def test_update_profile_with_garbage_if_match(self, client):
        user = UserFactory()
        headers = {**auth_headers(user), "If-Match": '"abc"'}

        resp = client.put(f"{BASE}/profile", json={"full_name": "X"}, headers=headers)

        assert resp.status_code == 422

    def test_update_profile_with_invalid_phone(self, client):
        user = UserFactory()

        resp = client.put(f"{BASE}/profile", json={"phone": "12ab"}, headers=auth_headers(user))

        assert resp.status_code == 422

    def test_change_password(self, client):
        pair = _register(client).get_json()["data"]
        headers = _bearer(pair["access_token"])

        bad = client.post(
            f"{BASE}/password",
            json={"current_password": "wrongpass1", "new_password": "brandnew99"},
            headers=headers,
        )
        ok = client.post(
            f"{BASE}/password",
            json={"current_password": "longpass1", "new_password": "brandnew99"},
            headers=headers,
        )

        assert bad.status_code == 401
        assert ok.status_code == 200
        assert ok.get_json()["data"]["version"] == 2
        stale = client.post(f"{BASE}/refresh", json={"refresh_token": pair["refresh_token"]})
        assert stale.status_code == 401
        relogin = client.post(f"{BASE}/login", json={"email": "a@x.com", "password": "brandnew99"})
        assert relogin.status_code == 200
