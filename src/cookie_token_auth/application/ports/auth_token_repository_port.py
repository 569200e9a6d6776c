"""Port for persistent-login token persistence operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class AuthTokenCreateInput:
    """Input payload for inserting one token series."""

    series: str
    user_id: UUID
    token_hash: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthTokenRecord:
    """Persisted token series with the hash of its current secret."""

    series: str
    user_id: UUID
    token_hash: str
    issued_at: datetime
    expires_at: datetime


class AuthTokenRepositoryPort(Protocol):
    """Token series persistence contract.

    Every method commits on its own; callers never need a surrounding transaction.
    """

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        """Persist a new token series."""

    async def get_active_by_series(self, *, series: str) -> AuthTokenRecord | None:
        """Return the unexpired record for one series or None."""

    async def replace_token_hash(
        self,
        *,
        series: str,
        token_hash: str,
        expires_at: datetime,
    ) -> AuthTokenRecord | None:
        """Overwrite the secret hash of an existing series; None when the series is gone."""

    async def delete_by_series(self, *, series: str) -> bool:
        """Delete one series and return whether a row was removed."""

    async def delete_all_for_user(self, *, user_id: UUID) -> int:
        """Delete every series owned by one user and return affected count."""

    async def delete_expired(self, *, now: datetime) -> int:
        """Delete every series whose expiry is not after `now`."""
