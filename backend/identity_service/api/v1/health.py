"""Liveness probe covering the database and the refresh-token backend."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from identity_service.api.deps import json_response, timing
from identity_service.core.extensions import db, redis_available

bp = Blueprint("health", __name__)


def _database_status() -> str:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        return "fail"
    return "ok"


def _token_store_status() -> tuple[str, str]:
    if not current_app.config.get("REDIS_URL"):
        # Refresh tokens share the database
        return "sql", "ok"
    return "redis", "ok" if redis_available() else "fail"


@bp.get("/health")
@timing
def healthcheck():
    """Report ``ok`` or ``degraded`` with per-dependency detail.

    Always answers 200 so orchestrators can read the body; ``status`` is
    ``degraded`` as soon as one dependency fails.
    """

    db_status = _database_status()
    backend, store_status = _token_store_status()
    healthy = db_status == "ok" and store_status == "ok"
    return json_response(
        {
            "status": "ok" if healthy else "degraded",
            "db": db_status,
            "token_store": backend,
            "token_store_status": store_status,
            "version": current_app.config.get("APP_VERSION", "dev"),
            "commit": current_app.config.get("APP_COMMIT", "unknown"),
        }
    )
