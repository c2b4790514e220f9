# tests/unit/services/test_referral_service.py
from __future__ import annotations

import logging

import pytest
from sqlalchemy import func, select

from identity_service.models.referral import Referral
from identity_service.services._shared.errors import InternalError, NotFoundError
from identity_service.services.referrals import service as referral_module
from identity_service.services.referrals.service import ReferralService
from tests.factories.user import UserFactory


@pytest.fixture()
def service() -> ReferralService:
    return ReferralService(reward_cents=750)


def _referral_count(session) -> int:
    return session.execute(select(func.count(Referral.id))).scalar_one()


class TestReferralCodes:
    def test_code_is_created_once_and_reused(self, service):
        user = UserFactory()

        code = service.get_or_create_code(user.id)

        assert code.startswith("REF-")
        assert len(code) == len("REF-") + 8
        assert service.get_or_create_code(user.id) == code

    def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            service.get_or_create_code(999_999)

    def test_collision_is_retried(self, service, monkeypatch):
        taken = service.get_or_create_code(UserFactory().id)
        candidates = iter([taken, "REF-0000beef"])
        monkeypatch.setattr(referral_module, "generate_referral_code", lambda: next(candidates))

        assert service.get_or_create_code(UserFactory().id) == "REF-0000beef"

    def test_gives_up_after_repeated_collisions(self, service, monkeypatch):
        taken = service.get_or_create_code(UserFactory().id)
        monkeypatch.setattr(referral_module, "generate_referral_code", lambda: taken)

        with pytest.raises(InternalError):
            service.get_or_create_code(UserFactory().id)


class TestProcessReferral:
    def test_records_referral_with_configured_reward(self, service, session):
        referrer = UserFactory()
        referee = UserFactory()
        code = service.get_or_create_code(referrer.id)

        service.process_referral(referee.id, f"  {code} ")

        row = session.execute(select(Referral)).scalar_one()
        assert (row.referrer_id, row.referee_id) == (referrer.id, referee.id)
        assert row.referral_code == code
        assert row.reward_amount_cents == 750
        assert row.referrer_credited is False
        assert row.referee_credited is False

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_empty_code_is_a_no_op(self, service, session, code):
        service.process_referral(UserFactory().id, code)
        assert _referral_count(session) == 0

    def test_unknown_code_is_logged_and_ignored(self, service, session, caplog):
        with caplog.at_level(logging.WARNING):
            service.process_referral(UserFactory().id, "REF-deadbeef")

        assert _referral_count(session) == 0
        assert any(getattr(r, "event", None) == "referral.invalid_code" for r in caplog.records)

    def test_second_referral_of_same_referee_is_logged_and_ignored(self, service, session, caplog):
        code = service.get_or_create_code(UserFactory().id)
        referee = UserFactory()
        service.process_referral(referee.id, code)

        with caplog.at_level(logging.ERROR):
            service.process_referral(referee.id, code)

        assert _referral_count(session) == 1
        assert any(getattr(r, "event", None) == "referral.failed" for r in caplog.records)


class TestMyReferrals:
    def test_lists_referrals_newest_first(self, service):
        referrer = UserFactory()
        code = service.get_or_create_code(referrer.id)
        first, second = UserFactory(), UserFactory()
        service.process_referral(first.id, code)
        service.process_referral(second.id, code)

        stats = service.get_my_referrals(referrer.id)

        assert stats.referral_code == code
        assert stats.total_referrals == 2
        assert [r.referee_id for r in stats.referrals] == [second.id, first.id]
        assert all(r.created_at.tzinfo is not None for r in stats.referrals)

    def test_creates_code_on_first_visit(self, service):
        stats = service.get_my_referrals(UserFactory().id)

        assert stats.referral_code.startswith("REF-")
        assert stats.total_referrals == 0
        assert stats.referrals == []
