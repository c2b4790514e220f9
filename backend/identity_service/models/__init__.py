from identity_service.models.referral import Referral, UserReferralCode
from identity_service.models.refresh_token import RefreshToken
from identity_service.models.user import User, UserRole

__all__ = [
    "RefreshToken",
    "Referral",
    "User",
    "UserReferralCode",
    "UserRole",
]
