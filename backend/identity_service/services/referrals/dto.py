"""
DTOs for ReferralService.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ReferralOut:
    """
    Output DTO for a single referral record.

    :param id: Referral identifier.
    :type id: int
    :param referee_id: User that registered with the code.
    :type referee_id: int
    :param reward_amount_cents: Reward attached to the referral.
    :type reward_amount_cents: int
    :param referrer_credited: Whether the referrer was credited.
    :type referrer_credited: bool
    :param referee_credited: Whether the referee was credited.
    :type referee_credited: bool
    :param created_at: Creation timestamp.
    :type created_at: datetime
    """

    id: int
    referee_id: int
    reward_amount_cents: int
    referrer_credited: bool
    referee_credited: bool
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ReferralStatsOut:
    """
    Output DTO for the referral dashboard of a user.

    :param referral_code: The user's shareable code.
    :type referral_code: str
    :param total_referrals: Number of users referred.
    :type total_referrals: int
    :param referrals: Referral records, newest first.
    :type referrals: list[ReferralOut]
    """

    referral_code: str
    total_referrals: int
    referrals: list[ReferralOut] = field(default_factory=list)
