"""Referral codes and referral records."""

from __future__ import annotations

import secrets
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from identity_service.core.extensions import db

from .base import PKMixin, ReprMixin, utcnow

REFERRAL_CODE_PREFIX = "REF-"


def generate_referral_code() -> str:
    """Return a fresh ``REF-`` code with eight random hex characters."""
    return f"{REFERRAL_CODE_PREFIX}{secrets.token_hex(4)}"


class UserReferralCode(PKMixin, ReprMixin, db.Model):
    """One shareable referral code per user."""

    __tablename__ = "user_referral_codes"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_user_referral_codes_user_id"),
        UniqueConstraint("code", name="uq_user_referral_codes_code"),
    )


class Referral(PKMixin, ReprMixin, db.Model):
    """
    A referee that registered with a referrer's code.

    Fields
    ------
    referrer_id : int
        Owner of the code that was used.
    referee_id : int
        Newly registered user. A user can be referred only once.
    referral_code : str
        Code presented at registration.
    reward_amount_cents : int
        Reward attached to the referral.
    referrer_credited, referee_credited : bool
        Crediting flags, flipped by downstream payout processes.
    """

    __tablename__ = "referrals"

    referrer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    referee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    referral_code: Mapped[str] = mapped_column(String(32), nullable=False)
    reward_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=500)
    referrer_credited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    referee_credited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("referee_id", name="uq_referrals_referee_id"),
        Index("ix_referrals_referrer_id", "referrer_id"),
    )
