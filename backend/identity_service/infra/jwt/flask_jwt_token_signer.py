# identity_service/infra/jwt/flask_jwt_token_signer.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

import jwt as pyjwt
from flask_jwt_extended import create_access_token, create_refresh_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from identity_service.services._shared.ports import TokenSigner, TokenVerificationError


@dataclass(slots=True)
class JWTTokenSigner(TokenSigner):
    """
    Adapter for Flask-JWT-Extended.

    Identity is the user id as a string (``sub``). Access tokens also carry
    ``email`` and ``role`` claims; refresh tokens carry nothing else. Lifetimes
    come from ``JWT_ACCESS_TOKEN_EXPIRES`` / ``JWT_REFRESH_TOKEN_EXPIRES``.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def issue_access(self, user_id: int, email: str, role: str) -> str:
        return cast(
            str,
            create_access_token(
                identity=str(user_id),
                additional_claims={"email": email, "role": role},
            ),
        )

    def issue_refresh(self, user_id: int) -> str:
        return cast(str, create_refresh_token(identity=str(user_id)))

    def verify(self, token: str) -> dict[str, Any]:
        # PyJWT covers signature/expiry; the extension adds claim-shape errors.
        try:
            return cast(dict[str, Any], decode_token(token))
        except (pyjwt.PyJWTError, JWTExtendedException) as exc:
            raise TokenVerificationError(str(exc)) from exc
