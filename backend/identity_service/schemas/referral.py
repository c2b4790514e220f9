"""Referral schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class ReferralSchema(Schema):
    """A referral credited to the caller."""

    id = fields.Integer(required=True)
    referee_id = fields.Integer(required=True)
    reward_amount_cents = fields.Integer(required=True)
    referrer_credited = fields.Boolean(required=True)
    referee_credited = fields.Boolean(required=True)
    created_at = fields.DateTime(required=True)


class ReferralStatsSchema(Schema):
    """The caller's referral code and the referrals it produced."""

    referral_code = fields.String(required=True)
    total_referrals = fields.Integer(required=True)
    referrals = fields.List(fields.Nested(ReferralSchema), required=True)


class ReferralCodeSchema(Schema):
    """The caller's shareable referral code."""

    referral_code = fields.String(required=True)
