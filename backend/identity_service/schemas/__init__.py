"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthResultSchema,
    ChangePasswordSchema,
    LoginSchema,
    RefreshSchema,
    RegisterSchema,
)
from .common import PaginationQuerySchema, build_meta
from .referral import ReferralCodeSchema, ReferralSchema, ReferralStatsSchema
from .user import ProfileUpdateSchema, UserSchema, UserStatsSchema

__all__ = [
    "RegisterSchema",
    "LoginSchema",
    "RefreshSchema",
    "ChangePasswordSchema",
    "AuthResultSchema",
    "PaginationQuerySchema",
    "build_meta",
    "UserSchema",
    "ProfileUpdateSchema",
    "UserStatsSchema",
    "ReferralSchema",
    "ReferralStatsSchema",
    "ReferralCodeSchema",
]
