"""
ReferralService
===============

Referral codes and the referral records created when a new user registers
with somebody else's code. Referral processing never blocks registration.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from identity_service.models.base import as_utc
from identity_service.models.referral import Referral, UserReferralCode, generate_referral_code
from identity_service.services._shared.base import BaseService, ServiceContext
from identity_service.services._shared.errors import InternalError, NotFoundError, violates
from identity_service.services.referrals.dto import ReferralOut, ReferralStatsOut

log = logging.getLogger(__name__)

DEFAULT_REWARD_CENTS = 500
_CODE_ATTEMPTS = 3


class ReferralService(BaseService):
    """
    Application service for referral codes.

    :param reward_cents: Reward stored on new referral records.
    :type reward_cents: int
    """

    def __init__(
        self, *, reward_cents: int = DEFAULT_REWARD_CENTS, ctx: ServiceContext | None = None
    ) -> None:
        super().__init__(ctx=ctx)
        self.reward_cents = reward_cents

    # --------------------------------------------------------------------- #
    # Codes
    # --------------------------------------------------------------------- #

    def get_or_create_code(self, user_id: int) -> str:
        """
        Return the user's referral code, generating one on first use.

        :param user_id: Code owner.
        :type user_id: int
        :returns: Code such as ``REF-1a2b3c4d``.
        :rtype: str
        :raises NotFoundError: If the user does not exist.
        :raises InternalError: If no unique code could be stored.
        """
        for _ in range(_CODE_ATTEMPTS):
            try:
                with self.rw_uow() as uow:
                    if uow.users.get(user_id) is None:
                        raise NotFoundError("User", user_id)
                    existing = uow.referral_codes.get_for_user(user_id)
                    if existing is not None:
                        return existing.code
                    code = generate_referral_code()
                    uow.referral_codes.add(UserReferralCode(user_id=user_id, code=code))
            except IntegrityError as exc:
                if violates(exc, "uq_user_referral_codes_user_id", "user_referral_codes.user_id"):
                    # A concurrent request stored a code first
                    continue
                log.warning("Referral code collision, regenerating: %s", exc.orig)
                continue
            log.info(
                "Referral code created",
                extra={"event": "referral.code_created", "user_id": user_id},
            )
            return code
        raise InternalError("could not allocate a referral code")

    # --------------------------------------------------------------------- #
    # Referrals
    # --------------------------------------------------------------------- #

    def process_referral(self, referee_id: int, code: str | None) -> None:
        """
        Record that ``referee_id`` registered with ``code``.

        Best-effort: an empty code is a no-op, an unknown code is logged and
        ignored, and a storage failure is logged and ignored.

        :param referee_id: The newly registered user.
        :type referee_id: int
        :param code: Referral code presented at registration.
        :type code: str | None
        """
        if not code or not code.strip():
            return

        try:
            with self.rw_uow() as uow:
                owner = uow.referral_codes.get_by_code(code)
                if owner is None:
                    log.warning(
                        "Invalid referral code %r",
                        code,
                        extra={"event": "referral.invalid_code", "user_id": referee_id},
                    )
                    return
                referrer_id = owner.user_id
                uow.referrals.add(
                    Referral(
                        referrer_id=referrer_id,
                        referee_id=referee_id,
                        referral_code=owner.code,
                        reward_amount_cents=self.reward_cents,
                    )
                )
        except SQLAlchemyError:
            log.exception(
                "Failed to save referral",
                extra={"event": "referral.failed", "user_id": referee_id},
            )
            return

        log.info(
            "Referral processed: referrer_id=%s referee_id=%s",
            referrer_id,
            referee_id,
            extra={"event": "referral.processed", "user_id": referee_id},
        )

    def get_my_referrals(self, user_id: int) -> ReferralStatsOut:
        """
        Return the user's code together with the referrals it produced.

        :param user_id: Referrer.
        :type user_id: int
        :returns: Referral dashboard.
        :rtype: ReferralStatsOut
        :raises NotFoundError: If the user does not exist.
        """
        code = self.get_or_create_code(user_id)

        with self.ro_uow() as uow:
            rows = uow.referrals.list_by_referrer(user_id)
            total = uow.referrals.count_by_referrer(user_id)
            return ReferralStatsOut(
                referral_code=code,
                total_referrals=total,
                referrals=[
                    ReferralOut(
                        id=r.id,
                        referee_id=r.referee_id,
                        reward_amount_cents=r.reward_amount_cents,
                        referrer_credited=r.referrer_credited,
                        referee_credited=r.referee_credited,
                        created_at=as_utc(r.created_at),
                    )
                    for r in rows
                ],
            )
