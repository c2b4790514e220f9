"""Credential lifecycle: registration, login, token rotation, profile and admin."""

from .dto import (
    AuthResult,
    ChangePasswordIn,
    LoginIn,
    RefreshIn,
    RegisterIn,
    UpdateProfileIn,
    UserPage,
    UserStatsOut,
    UserView,
)
from .service import CredentialService

__all__ = [
    "CredentialService",
    "RegisterIn",
    "LoginIn",
    "RefreshIn",
    "UpdateProfileIn",
    "ChangePasswordIn",
    "UserView",
    "AuthResult",
    "UserPage",
    "UserStatsOut",
]
