"""Token series lifecycle: issue, rotate, revoke, and expire persistent-login tokens."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from cookie_token_auth.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRecord,
    AuthTokenRepositoryPort,
)
from cookie_token_auth.application.ports.password_hasher_port import PasswordHasherPort

TokenFactory = Callable[[], str]
NowCallable = Callable[[], datetime]

DEFAULT_TOKEN_TTL = timedelta(weeks=10)
_SERIES_BYTES = 24
_SECRET_BYTES = 32
logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def generate_series() -> str:
    return secrets.token_urlsafe(_SERIES_BYTES)


def generate_secret() -> str:
    return secrets.token_urlsafe(_SECRET_BYTES)


@dataclass(frozen=True)
class IssuedToken:
    """Freshly created or rotated series together with its raw secret.

    The raw secret only lives in memory long enough to be written to the cookie.
    """

    record: AuthTokenRecord
    secret: str

    @property
    def series(self) -> str:
        return self.record.series


class TokenStore:
    """Persist hashed token secrets and apply series lifecycle transitions."""

    def __init__(
        self,
        *,
        repository: AuthTokenRepositoryPort,
        hasher: PasswordHasherPort,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        series_factory: TokenFactory = generate_series,
        secret_factory: TokenFactory = generate_secret,
        now: NowCallable = _utc_now,
    ) -> None:
        if token_ttl <= timedelta(0):
            raise ValueError("token_ttl must be positive")
        self._repository = repository
        self._hasher = hasher
        self._token_ttl = token_ttl
        self._series_factory = series_factory
        self._secret_factory = secret_factory
        self._now = now

    @property
    def token_ttl(self) -> timedelta:
        return self._token_ttl

    async def find_by_series(self, series: str) -> AuthTokenRecord | None:
        """Return the unexpired record for one series."""

        return await self._repository.get_active_by_series(series=series)

    async def create(self, user_id: UUID) -> IssuedToken:
        """Start a new series for one user and return it with its raw secret."""

        secret = self._secret_factory()
        record = await self._repository.create_token(
            AuthTokenCreateInput(
                series=self._series_factory(),
                user_id=user_id,
                token_hash=self._hasher.hash_password(secret),
                expires_at=self._now() + self._token_ttl,
            )
        )
        logger.info("cookie_token_series_created user_id=%s", user_id)
        return IssuedToken(record=record, secret=secret)

    async def rotate(self, record: AuthTokenRecord) -> IssuedToken | None:
        """Replace the secret of an existing series; None if the series was revoked meanwhile."""

        secret = self._secret_factory()
        rotated = await self._repository.replace_token_hash(
            series=record.series,
            token_hash=self._hasher.hash_password(secret),
            expires_at=self._now() + self._token_ttl,
        )
        if rotated is None:
            logger.info("cookie_token_rotation_skipped_series_gone user_id=%s", record.user_id)
            return None
        return IssuedToken(record=rotated, secret=secret)

    def verify_secret(self, record: AuthTokenRecord, secret: str) -> bool:
        """Check one raw secret against the stored hash of a series."""

        return self._hasher.verify_password(password=secret, password_hash=record.token_hash)

    async def delete_by_series(self, series: str) -> bool:
        return await self._repository.delete_by_series(series=series)

    async def delete_all_by_user(self, user_id: UUID) -> int:
        """Revoke every series of one user."""

        deleted = await self._repository.delete_all_for_user(user_id=user_id)
        logger.info("cookie_token_series_revoked_for_user user_id=%s count=%s", user_id, deleted)
        return deleted

    async def remove_expired(self) -> int:
        """Delete every series past its expiry."""

        removed = await self._repository.delete_expired(now=self._now())
        if removed:
            logger.info("cookie_token_expired_removed count=%s", removed)
        return removed
