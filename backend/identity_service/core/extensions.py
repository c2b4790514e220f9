"""Extension singletons and the optional Redis connection.

Refresh tokens live in the relational database unless ``REDIS_URL`` is set,
in which case :func:`get_redis` hands the shared client to the Redis store.
"""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Constraint names are stable across dialects; ``violates()`` matches on them
# (``uq_users_email``, ``uq_refresh_tokens_token``, ...).
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
redis_client: redis.Redis | None = None


def _connect_redis(url: str) -> redis.Redis:
    # Byte responses: the store decodes hash fields itself
    client = redis.Redis.from_url(url, decode_responses=False)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {url!r}") from exc
    return client


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy, Alembic and JWT to ``app``; connect Redis if configured.

    Parameters
    ----------
    app: flask.Flask
        Application being assembled. Importing :mod:`identity_service.models`
        here registers every table on ``metadata`` before migrations run.

    Raises
    ------
    RuntimeError
        If ``REDIS_URL`` is set but the server does not answer ``PING``.
    """
    global redis_client

    db.init_app(app)

    from identity_service import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    redis_url = app.config.get("REDIS_URL")
    redis_client = _connect_redis(redis_url) if redis_url else None
    if redis_client is None:
        app.extensions.pop("redis_client", None)
    else:
        app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the shared Redis client backing the refresh-token store."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Set REDIS_URL first.")
    return redis_client


def redis_available() -> bool:
    """Report whether the configured Redis server answers ``PING``."""
    if redis_client is None:
        return False
    try:
        return bool(redis_client.ping())
    except RedisError:
        return False
