"""Helpers to build ``Authorization`` headers for API tests."""

from __future__ import annotations

from datetime import timedelta

from flask_jwt_extended import create_access_token, create_refresh_token


def access_token_for(user, *, expires_delta: timedelta | None = None) -> str:
    """Sign an access token carrying the same claims the service issues."""
    role = getattr(user.role, "value", user.role)
    kwargs = {"expires_delta": expires_delta} if expires_delta is not None else {}
    return create_access_token(
        identity=str(user.id),
        additional_claims={"email": user.email, "role": role},
        **kwargs,
    )


def auth_headers(user) -> dict[str, str]:
    """Return a bearer header for ``user``."""
    return {"Authorization": f"Bearer {access_token_for(user)}"}


def expired_headers(user) -> dict[str, str]:
    """Return a bearer header whose access token expired a minute ago."""
    token = access_token_for(user, expires_delta=timedelta(minutes=-1))
    return {"Authorization": f"Bearer {token}"}


def refresh_headers(user) -> dict[str, str]:
    """Present a refresh token where an access token is expected."""
    return {"Authorization": f"Bearer {create_refresh_token(identity=str(user.id))}"}
