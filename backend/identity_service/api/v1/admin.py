"""Administrative user endpoints (role ``admin`` only)."""

from __future__ import annotations

from flask import Blueprint

from identity_service.api.deps import (
    get_credential_service,
    json_response,
    parse_admin_pagination,
    require_role,
    service_errors,
    timing,
)
from identity_service.api.etag import set_version_etag
from identity_service.models.user import UserRole
from identity_service.schemas import UserSchema, UserStatsSchema, build_meta

bp = Blueprint("admin", __name__, url_prefix="/admin")

ADMIN = UserRole.ADMIN.value

user_schema = UserSchema()
user_list_schema = UserSchema(many=True)
stats_schema = UserStatsSchema()


@bp.get("/users")
@require_role(ADMIN)
@timing
@service_errors
def list_users():
    """Return users newest first."""

    page, limit = parse_admin_pagination()
    result = get_credential_service().list_users(page=page, limit=limit)
    meta = build_meta(total=result.total, page=result.page, limit=result.limit)
    return json_response({"data": user_list_schema.dump(result.items), "meta": meta})


@bp.get("/users/<int:user_id>")
@require_role(ADMIN)
@timing
@service_errors
def get_user(user_id: int):
    user = get_credential_service().get_user_by_id(user_id)
    response = json_response({"data": user_schema.dump(user)})
    return set_version_etag(response, user.version)


@bp.post("/users/<int:user_id>/ban")
@require_role(ADMIN)
@timing
@service_errors
def ban_user(user_id: int):
    """Deactivate a user and revoke their refresh tokens."""

    user = get_credential_service().ban_user(user_id)
    response = json_response({"data": user_schema.dump(user)})
    return set_version_etag(response, user.version)


@bp.post("/users/<int:user_id>/verify")
@require_role(ADMIN)
@timing
@service_errors
def verify_user(user_id: int):
    user = get_credential_service().verify_user(user_id)
    response = json_response({"data": user_schema.dump(user)})
    return set_version_etag(response, user.version)


@bp.get("/stats/users")
@require_role(ADMIN)
@timing
@service_errors
def user_stats():
    """Return user counts overall and per role."""

    stats = get_credential_service().get_user_stats()
    return json_response({"data": stats_schema.dump(stats)})
