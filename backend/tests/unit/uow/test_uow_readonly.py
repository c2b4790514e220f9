import pytest
from sqlalchemy import func, select, text

from identity_service.models.user import User
from identity_service.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, session):
        """Attempting to flush ORM changes inside the RO UoW raises."""
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_blocks_core_dml(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(
                text("UPDATE users SET full_name = :n"), {"n": "mutated in read scope"}
            )

    def test_allows_reads(self, session):
        UserFactory()

        with ROuow() as uow:
            count = uow.session.execute(select(func.count(User.id))).scalar_one()
            assert count >= 1

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_guards_are_removed_on_exit(self, session):
        with ROuow():
            pass

        # Writes work again once the read scope is gone
        UserFactory(email="after-read@example.com")
        found = session.execute(select(User).where(User.email == "after-read@example.com"))
        assert found.scalar() is not None
