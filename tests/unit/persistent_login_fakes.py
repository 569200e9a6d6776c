"""In-memory collaborators shared by persistent-login unit tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from itertools import count
from uuid import UUID, uuid4

from cookie_token_auth.application.ports.auth_event_repository_port import AuthEventCreateInput
from cookie_token_auth.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRecord,
)
from cookie_token_auth.application.ports.user_repository_port import UserRecord
from cookie_token_auth.application.services.token_store import TokenStore

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeAuthTokenRepository:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.rows: dict[str, AuthTokenRecord] = {}
        self.calls: list[str] = []

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        self.calls.append("create_token")
        record = AuthTokenRecord(
            series=payload.series,
            user_id=payload.user_id,
            token_hash=payload.token_hash,
            issued_at=self.clock(),
            expires_at=payload.expires_at,
        )
        self.rows[payload.series] = record
        return record

    async def get_active_by_series(self, *, series: str) -> AuthTokenRecord | None:
        self.calls.append("get_active_by_series")
        record = self.rows.get(series)
        if record is None or record.expires_at <= self.clock():
            return None
        return record

    async def replace_token_hash(
        self,
        *,
        series: str,
        token_hash: str,
        expires_at: datetime,
    ) -> AuthTokenRecord | None:
        self.calls.append("replace_token_hash")
        record = self.rows.get(series)
        if record is None:
            return None
        rotated = replace(
            record,
            token_hash=token_hash,
            issued_at=self.clock(),
            expires_at=expires_at,
        )
        self.rows[series] = rotated
        return rotated

    async def delete_by_series(self, *, series: str) -> bool:
        self.calls.append("delete_by_series")
        return self.rows.pop(series, None) is not None

    async def delete_all_for_user(self, *, user_id: UUID) -> int:
        self.calls.append("delete_all_for_user")
        owned = [series for series, row in self.rows.items() if row.user_id == user_id]
        for series in owned:
            del self.rows[series]
        return len(owned)

    async def delete_expired(self, *, now: datetime) -> int:
        self.calls.append("delete_expired")
        expired = [series for series, row in self.rows.items() if row.expires_at <= now]
        for series in expired:
            del self.rows[series]
        return len(expired)


class FakeHasher:
    def hash_password(self, password: str) -> str:
        return f"hashed::{password}"

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{password}"


class FakeUserRepository:
    def __init__(self, *users: UserRecord) -> None:
        self.users_by_id = {user.user_id: user for user in users}
        self.lookups: list[UUID] = []

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        self.lookups.append(user_id)
        return self.users_by_id.get(user_id)

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        for user in self.users_by_id.values():
            if user.email == email:
                return user
        return None


class FakeAuthEventRepository:
    def __init__(self) -> None:
        self.events: list[AuthEventCreateInput] = []

    async def append_event(self, payload: AuthEventCreateInput) -> int:
        self.events.append(payload)
        return len(self.events)


class FakeCookieJar:
    """Cookie jar holding plaintext payload bytes, like a browser after decryption."""

    def __init__(self, value: bytes | None = None) -> None:
        self.value = value
        self.reads = 0
        self.writes: list[bytes] = []
        self.cleared = 0

    def read_token_cookie(self) -> bytes | None:
        self.reads += 1
        return self.value

    def write_token_cookie(self, payload: bytes) -> None:
        self.writes.append(payload)
        self.value = payload

    def clear_token_cookie(self) -> None:
        self.cleared += 1
        self.value = None


def make_user(*, email: str = "ada@example.org", is_active: bool = True) -> UserRecord:
    return UserRecord(
        user_id=uuid4(),
        email=email,
        display_name="Ada",
        password_hash="hashed::pw",
        is_active=is_active,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


def sequential_factory(prefix: str):
    counter = count(1)
    return lambda: f"{prefix}{next(counter)}"


def make_token_store(
    repository: FakeAuthTokenRepository,
    *,
    token_ttl: timedelta = timedelta(weeks=10),
) -> TokenStore:
    return TokenStore(
        repository=repository,
        hasher=FakeHasher(),
        token_ttl=token_ttl,
        series_factory=sequential_factory("S"),
        secret_factory=sequential_factory("s"),
        now=repository.clock,
    )
