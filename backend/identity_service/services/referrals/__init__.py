"""Referral codes and referral records."""

from .dto import ReferralOut, ReferralStatsOut
from .service import ReferralService

__all__ = ["ReferralService", "ReferralOut", "ReferralStatsOut"]
