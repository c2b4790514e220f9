"""Authentication and self-service profile endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from identity_service.api.deps import (
    current_user_id,
    get_credential_service,
    json_response,
    require_auth,
    service_errors,
    timing,
)
from identity_service.api.etag import expected_version_from_if_match, set_version_etag
from identity_service.schemas import (
    AuthResultSchema,
    ChangePasswordSchema,
    LoginSchema,
    ProfileUpdateSchema,
    RefreshSchema,
    RegisterSchema,
    UserSchema,
)
from identity_service.services.credentials import (
    ChangePasswordIn,
    LoginIn,
    RefreshIn,
    RegisterIn,
    UpdateProfileIn,
)

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
password_schema = ChangePasswordSchema()
profile_update_schema = ProfileUpdateSchema()
auth_result_schema = AuthResultSchema()
user_schema = UserSchema()


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
@service_errors
def register():
    """Create an account and return its first token pair."""

    payload = register_schema.load(_json_body())
    result = get_credential_service().register(RegisterIn(**payload))
    response = json_response({"data": auth_result_schema.dump(result)}, status=201)
    return set_version_etag(response, result.user.version)


@bp.post("/login")
@timing
@service_errors
def login():
    """Authenticate credentials and issue a new token pair."""

    data = login_schema.load(_json_body())
    result = get_credential_service().login(LoginIn(**data))
    return json_response({"data": auth_result_schema.dump(result)})


@bp.post("/refresh")
@timing
@service_errors
def refresh():
    """Rotate a refresh token; the presented token becomes unusable."""

    data = refresh_schema.load(_json_body())
    result = get_credential_service().refresh_token(RefreshIn(**data))
    return json_response({"data": auth_result_schema.dump(result)})


@bp.post("/logout")
@require_auth
@timing
@service_errors
def logout():
    """Revoke every refresh token of the caller."""

    get_credential_service().logout(current_user_id())
    return "", 204


@bp.get("/profile")
@require_auth
@timing
@service_errors
def get_profile():
    """Return the caller's profile with its version as ``ETag``."""

    user = get_credential_service().get_profile(current_user_id())
    response = json_response({"data": user_schema.dump(user)})
    return set_version_etag(response, user.version)


@bp.put("/profile")
@require_auth
@timing
@service_errors
def update_profile():
    """Partially update the caller's profile; honours ``If-Match``."""

    expected_version = expected_version_from_if_match()
    data = profile_update_schema.load(_json_body())
    user = get_credential_service().update_profile(
        current_user_id(), UpdateProfileIn(**data), expected_version=expected_version
    )
    response = json_response({"data": user_schema.dump(user)})
    return set_version_etag(response, user.version)


@bp.post("/password")
@require_auth
@timing
@service_errors
def change_password():
    """Change the caller's password and end their other sessions."""

    data = password_schema.load(_json_body())
    user = get_credential_service().change_password(current_user_id(), ChangePasswordIn(**data))
    response = json_response({"data": user_schema.dump(user)})
    return set_version_etag(response, user.version)
