"""Unit tests for UserRepository."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select, update
from sqlalchemy.orm.attributes import set_committed_value

from identity_service.models.base import utcnow
from identity_service.models.user import User, UserRole
from identity_service.repositories.user import UserRepository
from identity_service.services._shared.errors import ConflictError
from tests.factories.user import AdminFactory, UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_get_by_email_is_case_insensitive(self, repo, session):
        u = UserFactory(email="alice@example.com")

        fetched = repo.get_by_email("  ALICE@example.com ")
        assert fetched is not None
        assert fetched.id == u.id

    def test_exists_by_email(self, repo, session):
        UserFactory(email="bob@example.com")

        assert repo.exists_by_email("Bob@Example.com")
        assert not repo.exists_by_email("nonexistent@example.com")

    def test_update_writes_new_version(self, repo, session):
        u = UserFactory()

        u.update_profile(full_name="Renamed")
        repo.update(u)
        session.commit()

        stored = session.execute(select(User.version, User.full_name).where(User.id == u.id)).one()
        assert tuple(stored) == (2, "Renamed")

    def test_update_raises_conflict_when_row_moved(self, repo, session):
        u = UserFactory()
        # Another writer commits version 2 behind this session's back
        session.execute(
            update(User)
            .where(User.id == u.id)
            .values(version=User.version + 1)
            .execution_options(synchronize_session=False)
        )
        session.commit()
        assert u.version == 2
        set_committed_value(u, "version", 1)

        u.update_profile(full_name="Loser")
        with pytest.raises(ConflictError):
            repo.update(u)
        session.rollback()

        stored = session.execute(select(User.version, User.full_name).where(User.id == u.id)).one()
        assert stored.version == 2
        assert stored.full_name != "Loser"

    def test_only_one_of_n_writers_from_same_version_wins(self, repo, session):
        u = UserFactory()
        loaded_version = u.version
        outcomes = []

        for i in range(5):
            user = session.get(User, u.id)
            # Each writer believes it loaded ``loaded_version``
            set_committed_value(user, "version", loaded_version)
            user.update_profile(full_name=f"Writer {i}")
            try:
                repo.update(user)
                session.commit()
                outcomes.append("ok")
            except ConflictError:
                session.rollback()
                outcomes.append("conflict")

        assert outcomes.count("ok") == 1
        assert outcomes[0] == "ok"
        stored = session.execute(select(User.version).where(User.id == u.id)).scalar_one()
        assert stored == loaded_version + 1

    def test_paginate_recent_orders_newest_first(self, repo, session):
        now = utcnow()
        old = UserFactory(created_at=now - timedelta(days=2))
        mid = UserFactory(created_at=now - timedelta(days=1))
        new = UserFactory(created_at=now)

        page = repo.paginate_recent(page=1, limit=2)
        assert page.total == 3
        assert [u.id for u in page.items] == [new.id, mid.id]

        page2 = repo.paginate_recent(page=2, limit=2)
        assert [u.id for u in page2.items] == [old.id]

    def test_count_by_role(self, repo, session):
        UserFactory.create_batch(2)
        UserFactory(role=UserRole.OWNER)
        AdminFactory()

        counts = repo.count_by_role()
        assert counts == {UserRole.RUNNER: 2, UserRole.OWNER: 1, UserRole.ADMIN: 1}
