"""
Unit of Work contract shared by the credential and referral services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from identity_service.repositories import (
        ReferralCodeRepository,
        ReferralRepository,
        RefreshTokenRepository,
        UserRepository,
    )


class UnitOfWork(ABC):
    """
    One transactional boundary around the repositories a use case touches.

    Leaving the ``with`` block without an exception commits; any exception
    rolls back and propagates. Version-fence conflicts surface from
    ``users.update`` inside the block, never at commit time.
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository
    referral_codes: ReferralCodeRepository
    referrals: ReferralRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
