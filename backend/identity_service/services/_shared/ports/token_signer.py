from __future__ import annotations

from typing import Any, Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenVerificationError(Exception):
    """Raised when a token fails signature, expiry or format checks."""


class TokenSigner(Protocol):
    """Port for issuing and verifying signed tokens."""

    def issue_access(self, user_id: int, email: str, role: str) -> str:
        """Issue a short-lived access token carrying identity and role."""

    def issue_refresh(self, user_id: int) -> str:
        """Issue a refresh token carrying the user id only."""

    def verify(self, token: str) -> dict[str, Any]:
        """
        Verify ``token`` and return its claims.

        Claims always include ``sub`` (user id as string) and ``type``
        (``"access"`` or ``"refresh"``).

        :raises TokenVerificationError: If the token is not acceptable.
        """


class StubTokenSigner(TokenSigner):
    """Deterministic token signer used in unit tests."""

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}
        self._expired: set[str] = set()

    def _mk(self, ttype: str, claims: dict[str, Any]) -> str:
        self._seq += 1
        token = f"{ttype}.{claims['sub']}.{self._seq}"
        self._issued[token] = {**claims, "type": ttype}
        return token

    def issue_access(self, user_id: int, email: str, role: str) -> str:
        return self._mk(ACCESS_TOKEN_TYPE, {"sub": str(user_id), "email": email, "role": role})

    def issue_refresh(self, user_id: int) -> str:
        return self._mk(REFRESH_TOKEN_TYPE, {"sub": str(user_id)})

    def expire(self, token: str) -> None:
        """Make ``verify`` reject ``token`` as if its signature had expired."""
        self._expired.add(token)

    def verify(self, token: str) -> dict[str, Any]:
        if token in self._expired:
            raise TokenVerificationError("Token has expired")
        try:
            return dict(self._issued[token])
        except KeyError:
            raise TokenVerificationError("Unknown token") from None
