"""Unit tests for the flask-jwt-extended token signer adapter."""

from __future__ import annotations

from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from identity_service.infra.jwt.flask_jwt_token_signer import JWTTokenSigner
from identity_service.services._shared.ports import TokenVerificationError


@pytest.fixture()
def signer(app):
    return JWTTokenSigner()


def test_access_token_carries_identity_and_role(signer):
    claims = signer.verify(signer.issue_access(42, "a@example.com", "owner"))

    assert claims["sub"] == "42"
    assert claims["type"] == "access"
    assert claims["email"] == "a@example.com"
    assert claims["role"] == "owner"


def test_refresh_token_carries_subject_only(signer):
    claims = signer.verify(signer.issue_refresh(7))

    assert claims["sub"] == "7"
    assert claims["type"] == "refresh"
    assert "role" not in claims
    assert "email" not in claims


def test_two_refresh_tokens_for_same_user_differ(signer):
    assert signer.issue_refresh(7) != signer.issue_refresh(7)


@pytest.mark.parametrize("token", ["garbage", "a.b.c", ""])
def test_verify_rejects_malformed(signer, token):
    with pytest.raises(TokenVerificationError):
        signer.verify(token)


def test_verify_rejects_expired(signer):
    token = create_access_token(identity="1", expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenVerificationError):
        signer.verify(token)


def test_verify_rejects_foreign_signature(signer, app):
    token = signer.issue_refresh(1)
    original = app.config["JWT_SECRET_KEY"]
    app.config["JWT_SECRET_KEY"] = "another-secret"
    try:
        with pytest.raises(TokenVerificationError):
            signer.verify(token)
    finally:
        app.config["JWT_SECRET_KEY"] = original
