"""Service layer.

Application services live in subpackages and are imported from there:

- :mod:`identity_service.services.credentials`
    * :class:`CredentialService` (register, login, token rotation, profile,
      admin reads and moderation)

- :mod:`identity_service.services.referrals`
    * :class:`ReferralService` (referral codes and referral records)

Shared building blocks (base service, DTOs, errors, ports) live in
:mod:`identity_service.services._shared`.
"""
