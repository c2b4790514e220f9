# identity_service/infra/sqlalchemy/refresh_token_store.py
from __future__ import annotations

from datetime import datetime

from identity_service.models.base import as_utc
from identity_service.models.refresh_token import RefreshToken
from identity_service.services._shared.ports import RefreshTokenRecord, RefreshTokenStore
from identity_service.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


def _to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        user_id=row.user_id,
        token=row.token,
        expires_at=as_utc(row.expires_at),
        revoked=bool(row.revoked),
        created_at=as_utc(row.created_at),
    )


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh token store.

    Every call runs in its own read-write unit of work, so callers must not
    invoke it from inside another open UoW block.
    """

    def save(self, record: RefreshTokenRecord) -> None:
        with SQLAlchemyUnitOfWork() as uow:
            uow.refresh_tokens.add(
                RefreshToken(
                    id=record.id,
                    user_id=record.user_id,
                    token=record.token,
                    expires_at=record.expires_at,
                    revoked=record.revoked,
                    created_at=record.created_at,
                )
            )

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        with SQLAlchemyUnitOfWork() as uow:
            row = uow.refresh_tokens.get_by_token(token)
            return _to_record(row) if row is not None else None

    def revoke(self, token: str, *, now: datetime) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.revoke_if_active(token, now=now)

    def revoke_all_for_user(self, user_id: int) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.revoke_all_for_user(user_id)

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        with SQLAlchemyUnitOfWork() as uow:
            return [_to_record(row) for row in uow.refresh_tokens.list_for_user(user_id)]
