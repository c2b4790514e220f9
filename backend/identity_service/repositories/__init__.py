"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from identity_service.repositories.base import (
    BaseRepository,
    Page,
    Pagination,
    paginate_select,
)
from identity_service.repositories.referral import ReferralCodeRepository, ReferralRepository
from identity_service.repositories.refresh_token import RefreshTokenRepository
from identity_service.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "Pagination",
    "paginate_select",
    # Domain
    "UserRepository",
    "RefreshTokenRepository",
    "ReferralCodeRepository",
    "ReferralRepository",
]
