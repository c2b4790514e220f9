"""Unit of Work abstractions and concrete implementations.

This package re-exports the SQLAlchemy-backed units of work used by the
credential and referral services, alongside the abstract contract.
"""

from .base import UnitOfWork
from .sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

__all__ = [
    "UnitOfWork",
    "SQLAlchemyUnitOfWork",
    "SQLAlchemyReadOnlyUnitOfWork",
]
