"""Factory Boy definition for :class:`identity_service.models.user.User`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from identity_service.models.user import User, UserRole
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "longpass1"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`identity_service.models.user.User` instances.

    Notes
    -----
    - ``password`` is a factory parameter; only its hash reaches the row.
    - Users start unverified at version 1, like :meth:`User.create`.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Faker("name")
    role = UserRole.RUNNER
    is_verified = False
    version = 1
    password_hash = factory.LazyAttribute(lambda o: generate_password_hash(o.password))


class AdminFactory(UserFactory):
    """Verified administrator."""

    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = UserRole.ADMIN
    is_verified = True
