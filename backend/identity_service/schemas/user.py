"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class UserSchema(Schema):
    """Public representation of a user. The password hash is never exposed."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    phone = fields.String(allow_none=True)
    full_name = fields.String(required=True)
    role = fields.String(required=True)
    is_verified = fields.Boolean(required=True)
    avatar_url = fields.String(allow_none=True)
    version = fields.Integer(required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)


class ProfileUpdateSchema(Schema):
    """Partial profile update; omitted or empty fields are left unchanged."""

    full_name = fields.String(load_default=None, validate=validate.Length(max=100))
    phone = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=20))
    avatar_url = fields.String(
        load_default=None, allow_none=True, validate=validate.Length(max=512)
    )


class UserStatsSchema(Schema):
    """User counts, overall and per role."""

    total = fields.Integer(required=True)
    by_role = fields.Dict(keys=fields.String(), values=fields.Integer(), required=True)
