"""Unit tests for the ``User`` aggregate."""

from __future__ import annotations

import pytest

from identity_service.models.user import User, UserRole


def _new_user(**overrides) -> User:
    data = {
        "email": "  Alice@Example.COM ",
        "password": "longpass1",
        "full_name": " Alice Doe ",
    }
    data.update(overrides)
    return User.create(**data)


class TestUserCreate:
    def test_defaults_and_normalization(self):
        user = _new_user()

        assert user.email == "alice@example.com"
        assert user.full_name == "Alice Doe"
        assert user.role is UserRole.RUNNER
        assert user.is_verified is False
        assert user.version == 1
        assert user.created_at == user.updated_at

    def test_password_is_hashed_and_write_only(self):
        user = _new_user()

        assert user.password_hash != "longpass1"
        assert user.verify_password("longpass1")
        assert not user.verify_password("longpass2")
        with pytest.raises(AttributeError):
            _ = user.password

    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "not-an-email"},
            {"email": ""},
            {"password": "short"},
            {"full_name": "   "},
            {"full_name": "x" * 101},
            {"phone": "12ab"},
            {"role": "shop"},
        ],
    )
    def test_rejects_invalid_fields(self, overrides):
        with pytest.raises(ValueError):
            _new_user(**overrides)

    def test_blank_phone_is_stored_as_null(self):
        assert _new_user(phone="  ").phone is None
        assert _new_user(phone="+34600111222").phone == "+34600111222"

    def test_role_accepts_strings(self):
        assert _new_user(role="Owner").role is UserRole.OWNER


class TestUserMutations:
    def test_each_mutation_bumps_version_once(self):
        user = _new_user()
        before = user.updated_at

        user.update_profile(full_name="Alice B", phone="+34600111222", avatar_url="a.png")
        assert user.version == 2
        assert user.full_name == "Alice B"
        assert user.avatar_url == "a.png"
        assert user.updated_at >= before

        user.change_password("anotherpass")
        assert user.version == 3
        assert user.verify_password("anotherpass")

        user.verify()
        assert (user.is_verified, user.version) == (True, 4)

        user.deactivate()
        assert (user.is_verified, user.version) == (False, 5)

    def test_empty_profile_values_leave_fields_untouched(self):
        user = _new_user(phone="+34600111222")

        user.update_profile(full_name="", phone=None, avatar_url=None)

        assert user.full_name == "Alice Doe"
        assert user.phone == "+34600111222"
        assert user.version == 2

    def test_short_new_password_is_rejected_without_bump(self):
        user = _new_user()
        with pytest.raises(ValueError):
            user.change_password("short")
        assert user.version == 1
        assert user.verify_password("longpass1")
