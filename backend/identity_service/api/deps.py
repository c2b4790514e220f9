"""Shared API helpers: auth guards, service wiring and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from identity_service.core.errors import Forbidden, Unauthorized
from identity_service.core.extensions import get_redis
from identity_service.core.logger import ensure_request_id
from identity_service.infra.jwt.flask_jwt_token_signer import JWTTokenSigner
from identity_service.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from identity_service.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from identity_service.schemas.common import PaginationQuerySchema
from identity_service.services._shared.base import BaseService, ServiceContext
from identity_service.services._shared.errors import ServiceError
from identity_service.services._shared.ports import RefreshTokenStore
from identity_service.services.credentials.service import CredentialService
from identity_service.services.referrals.service import ReferralService

F = TypeVar("F", bound=Callable[..., Any])

_translator = BaseService()


# ------------------------------ Responses ------------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def service_errors(func: F) -> F:
    """Translate :class:`ServiceError` raised by a handler into an ``APIError``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            return func(*args, **kwargs)
        except ServiceError as exc:
            raise _translator.translate_exceptions(exc) from exc

    return wrapper  # type: ignore[return-value]


# ------------------------------ Auth guards ----------------------------------


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(required: str) -> Callable[[F], F]:
    """Ensure the verified access token carries the given ``role`` claim."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            claims = get_jwt() or {}
            if claims.get("role") != required:
                raise Forbidden("Insufficient role")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def current_user_id() -> int:
    """Return the authenticated user id from the verified JWT."""

    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError):
        raise Unauthorized("Malformed token subject") from None


# ------------------------------ Query parsing --------------------------------


def parse_admin_pagination() -> tuple[int, int]:
    """Parse ``page``/``limit`` for admin listings (bad values fall back)."""

    schema = PaginationQuerySchema(
        default_limit=int(current_app.config.get("ADMIN_LIST_DEFAULT_LIMIT", 20)),
        max_limit=int(current_app.config.get("ADMIN_LIST_MAX_LIMIT", 100)),
    )
    data = schema.load(request.args)
    return data["page"], data["limit"]


# ------------------------------ Service wiring -------------------------------


def _service_context() -> ServiceContext:
    return ServiceContext(request_id=ensure_request_id())


def get_refresh_token_store() -> RefreshTokenStore:
    """Return the Redis store when ``REDIS_URL`` is configured, else the SQL one."""

    if current_app.config.get("REDIS_URL"):
        return RedisRefreshTokenStore(get_redis())
    return SQLAlchemyRefreshTokenStore()


def get_referral_service() -> ReferralService:
    return ReferralService(
        reward_cents=int(current_app.config.get("REFERRAL_REWARD_CENTS", 500)),
        ctx=_service_context(),
    )


def get_credential_service() -> CredentialService:
    return CredentialService(
        signer=JWTTokenSigner(),
        store=get_refresh_token_store(),
        referrals=get_referral_service(),
        refresh_ttl=current_app.config["JWT_REFRESH_TOKEN_EXPIRES"],
        ctx=_service_context(),
    )
