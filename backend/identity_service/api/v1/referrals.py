"""Referral endpoints for the authenticated user."""

from __future__ import annotations

from flask import Blueprint

from identity_service.api.deps import (
    current_user_id,
    get_referral_service,
    json_response,
    require_auth,
    service_errors,
    timing,
)
from identity_service.schemas import ReferralCodeSchema, ReferralStatsSchema

bp = Blueprint("referrals", __name__, url_prefix="/referrals")

stats_schema = ReferralStatsSchema()
code_schema = ReferralCodeSchema()


@bp.get("/me")
@require_auth
@timing
@service_errors
def my_referrals():
    """Return the caller's referral code and the referrals it produced."""

    stats = get_referral_service().get_my_referrals(current_user_id())
    return json_response({"data": stats_schema.dump(stats)})


@bp.get("/code")
@require_auth
@timing
@service_errors
def my_code():
    """Return (creating on first call) the caller's referral code."""

    code = get_referral_service().get_or_create_code(current_user_id())
    return json_response({"data": code_schema.dump({"referral_code": code})})
