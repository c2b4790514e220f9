"""
identity_service.services._shared.ports
=======================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token signing and refresh-token persistence.

These ports decouple the service layer from concrete implementations.

Modules
-------
- :mod:`token_signer`:
    Defines :class:`~.TokenSigner`, the abstraction for issuing and verifying
    access/refresh tokens, and :class:`~.TokenVerificationError`.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenRecord`,
    the abstraction for refresh-token persistence with conditional revocation.

Design Notes
------------
Concrete adapters (flask-jwt-extended, SQLAlchemy, Redis) live under
``identity_service.infra``. The in-memory/stub doubles live next to the
ports for unit tests.
"""

from __future__ import annotations

from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from .token_signer import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    StubTokenSigner,
    TokenSigner,
    TokenVerificationError,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "TokenSigner",
    "TokenVerificationError",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "InMemoryRefreshTokenStore",
    "StubTokenSigner",
]
