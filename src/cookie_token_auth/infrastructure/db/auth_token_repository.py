"""SQLAlchemy adapter for persistent-login token series."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cookie_token_auth.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRecord,
    AuthTokenRepositoryPort,
)
from cookie_token_auth.infrastructure.db.metadata import auth_tokens


class SqlAlchemyAuthTokenRepository(AuthTokenRepositoryPort):
    """Auth token repository backed by SQLAlchemy async sessions.

    Each method runs one statement in its own committed transaction. Rotation
    is a keyed UPDATE, so concurrent rotation and revocation of one series end
    with either zero rows or one row, never two live hashes.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        """Insert a new series row and return it."""

        statement = sa.insert(auth_tokens).values(
            series=payload.series,
            user_id=payload.user_id,
            token_hash=payload.token_hash,
            issued_at=datetime.now(tz=UTC),
            expires_at=payload.expires_at,
        ).returning(*auth_tokens.c)

        async with self._session_factory() as session:
            result = await session.execute(statement)
            await session.commit()

        row = result.mappings().one()
        return _to_auth_token_record(row)

    async def get_active_by_series(self, *, series: str) -> AuthTokenRecord | None:
        """Return series row when not expired."""

        now = datetime.now(tz=UTC)
        statement = sa.select(*auth_tokens.c).where(
            auth_tokens.c.series == series,
            auth_tokens.c.expires_at > now,
        ).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_auth_token_record(row)

    async def replace_token_hash(
        self,
        *,
        series: str,
        token_hash: str,
        expires_at: datetime,
    ) -> AuthTokenRecord | None:
        """Overwrite hash and expiry of one series; None when no row matched."""

        statement = (
            sa.update(auth_tokens)
            .where(auth_tokens.c.series == series)
            .values(
                token_hash=token_hash,
                issued_at=datetime.now(tz=UTC),
                expires_at=expires_at,
            )
            .returning(*auth_tokens.c)
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)
            row = result.mappings().first()
            await session.commit()

        if row is None:
            return None
        return _to_auth_token_record(row)

    async def delete_by_series(self, *, series: str) -> bool:
        statement = sa.delete(auth_tokens).where(auth_tokens.c.series == series)
        return await self._execute_delete(statement) > 0

    async def delete_all_for_user(self, *, user_id: UUID) -> int:
        """Delete every series owned by one user."""

        statement = sa.delete(auth_tokens).where(auth_tokens.c.user_id == user_id)
        return await self._execute_delete(statement)

    async def delete_expired(self, *, now: datetime) -> int:
        """Delete every series with expiry at or before `now`."""

        statement = sa.delete(auth_tokens).where(auth_tokens.c.expires_at <= now)
        return await self._execute_delete(statement)

    async def _execute_delete(self, statement: sa.Delete) -> int:
        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()

        return int(result.rowcount or 0)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_auth_token_record(row: sa.RowMapping) -> AuthTokenRecord:
    raw_user_id = row["user_id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    return AuthTokenRecord(
        series=cast(str, row["series"]),
        user_id=user_id,
        token_hash=cast(str, row["token_hash"]),
        issued_at=_ensure_aware(cast(datetime, row["issued_at"])),
        expires_at=_ensure_aware(cast(datetime, row["expires_at"])),
    )
