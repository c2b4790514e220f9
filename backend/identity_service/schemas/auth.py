"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .user import UserSchema


class RegisterSchema(Schema):
    """Input payload for account registration.

    Password length and role rules are enforced by the service so the error
    messages stay identical across transports.
    """

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(max=128))
    full_name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    phone = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=20))
    role = fields.String(load_default=None, allow_none=True)
    referral_code = fields.String(
        load_default=None, allow_none=True, validate=validate.Length(max=32)
    )


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.String(required=True, validate=validate.Length(min=1, max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class ChangePasswordSchema(Schema):
    """Input payload for changing the caller's password."""

    current_password = fields.String(required=True, validate=validate.Length(min=1, max=128))
    new_password = fields.String(required=True, validate=validate.Length(max=128))


class AuthResultSchema(Schema):
    """Response payload with a token pair and the authenticated user."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.Constant("bearer")
    user = fields.Nested(UserSchema, required=True)
