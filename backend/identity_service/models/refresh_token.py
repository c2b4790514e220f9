"""Persisted refresh tokens (append-only, revocation is one-way)."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from identity_service.core.extensions import db

from .base import ReprMixin, utcnow


class RefreshToken(ReprMixin, db.Model):
    """
    Server-side record of an issued refresh token.

    Rows are never deleted and never updated except for the ``revoked`` flag,
    which only goes from ``False`` to ``True``.

    Fields
    ------
    id : str
        Opaque identifier (uuid4 hex).
    user_id : int
        Owning user (reference only, no ORM relationship).
    token : str
        The signed token string handed to the client. Unique.
    expires_at : datetime
        Absolute expiry (UTC).
    revoked : bool
        Revocation flag.
    created_at : datetime
        Issue timestamp (UTC).
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(1024), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        Index("ix_refresh_tokens_user_id", "user_id"),
    )
