"""Referral repositories (codes and referral records)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

from sqlalchemy import func, select

from identity_service.models.referral import Referral, UserReferralCode
from identity_service.repositories.base import BaseRepository


class ReferralCodeRepository(BaseRepository[UserReferralCode]):
    """Lookup of per-user referral codes."""

    model = UserReferralCode

    def get_for_user(self, user_id: int) -> UserReferralCode | None:
        stmt = select(UserReferralCode).where(UserReferralCode.user_id == user_id)
        return cast(UserReferralCode | None, self.session.execute(stmt).scalars().first())

    def get_by_code(self, code: str) -> UserReferralCode | None:
        stmt = select(UserReferralCode).where(UserReferralCode.code == code.strip())
        return cast(UserReferralCode | None, self.session.execute(stmt).scalars().first())


class ReferralRepository(BaseRepository[Referral]):
    """Referral records, queried from the referrer side."""

    model = Referral

    def list_by_referrer(self, referrer_id: int) -> Sequence[Referral]:
        """Return referrals credited to ``referrer_id``, newest first."""
        stmt = (
            select(Referral)
            .where(Referral.referrer_id == referrer_id)
            .order_by(Referral.created_at.desc(), Referral.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def count_by_referrer(self, referrer_id: int) -> int:
        stmt = select(func.count(Referral.id)).where(Referral.referrer_id == referrer_id)
        return int(self.session.execute(stmt).scalar_one())
