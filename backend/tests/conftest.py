"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside an outer transaction on a single in-memory SQLite
connection. Application code commits and rolls back SAVEPOINTs nested in it,
and the outer transaction is rolled back when the test ends, so data changes
never leak between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from identity_service.core.config import TestingConfig
from identity_service.core.extensions import db as _db  # Flask-SQLAlchemy instance
from identity_service.factory import create_app  # application factory under test
from identity_service.services._shared.ports import (
    InMemoryRefreshTokenStore,
    StubTokenSigner,
)


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps refresh tokens in the database (no Redis).
    - Avoids hitting external services.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REDIS_URL = None
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    return create_app(TestConfig)


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    pysqlite emits its own BEGIN/COMMIT and breaks SAVEPOINT semantics, so the
    driver's transaction handling is disabled and SQLAlchemy emits ``BEGIN``
    itself. Listeners are installed before the first connection is opened.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        engine = _db.engine

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated connection open for the whole session.

    Yields
    ------
    sqlalchemy.engine.Connection
        Connection reused by nested transactions in each test.
    """
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session joined to a per-test outer transaction.

    ``join_transaction_mode="create_savepoint"`` turns every ``commit()`` and
    ``rollback()`` issued by units of work into SAVEPOINT release/rollback, so
    the outer transaction stays open until teardown.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; rolled back after
        each test.
    """
    outer = connection.begin()

    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        outer.rollback()


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def signer():
    """Deterministic token signer double."""
    return StubTokenSigner()


@pytest.fixture()
def token_store():
    """In-memory refresh token store double."""
    return InMemoryRefreshTokenStore()


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
