"""Persistent-login validation: verify, rotate, or revoke on token theft."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from cookie_token_auth.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
)
from cookie_token_auth.application.ports.auth_token_repository_port import AuthTokenRecord
from cookie_token_auth.application.ports.cookie_jar_port import CookieJarPort
from cookie_token_auth.application.ports.user_repository_port import (
    UserRecord,
    UserRepositoryPort,
)
from cookie_token_auth.application.services.attempt_tracker import AttemptTracker, SessionContext
from cookie_token_auth.application.services.token_codec import TokenCodec
from cookie_token_auth.application.services.token_store import TokenStore

DEFAULT_TOKEN_ERROR_MESSAGE = "A session token mismatch was detected. You have been logged out."
logger = logging.getLogger(__name__)


class TokenValidationOutcome(StrEnum):
    """Terminal per-request outcomes of one validation."""

    NO_TOKEN = "no_token"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TokenValidationResult:
    """Validation result; `warning` is set only for rejected (suspected stolen) tokens."""

    outcome: TokenValidationOutcome
    user: UserRecord | None = None
    suspected_user_id: UUID | None = None
    warning: str | None = None


_NO_TOKEN = TokenValidationResult(outcome=TokenValidationOutcome.NO_TOKEN)


class TokenValidator:
    """Authenticate a request from its persistent-login cookie at most once per session."""

    def __init__(
        self,
        *,
        token_store: TokenStore,
        users: UserRepositoryPort,
        codec: TokenCodec | None = None,
        attempt_tracker: AttemptTracker | None = None,
        auth_events: AuthEventRepositoryPort | None = None,
        token_error_message: str = DEFAULT_TOKEN_ERROR_MESSAGE,
    ) -> None:
        self._token_store = token_store
        self._users = users
        self._codec = codec or TokenCodec()
        self._attempt_tracker = attempt_tracker or AttemptTracker()
        self._auth_events = auth_events
        self._token_error_message = token_error_message

    @property
    def codec(self) -> TokenCodec:
        return self._codec

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    async def validate(
        self,
        *,
        session: SessionContext,
        cookies: CookieJarPort,
    ) -> TokenValidationResult:
        """Run the one validation attempt allowed for this session.

        Storage errors propagate to the caller; nothing here authenticates on
        a failed read or write.
        """

        if self._attempt_tracker.has_attempted(session):
            return _NO_TOKEN
        self._attempt_tracker.mark_attempted(session)

        await self._token_store.remove_expired()

        payload = self._codec.decode(cookies.read_token_cookie())
        if payload is None:
            return _NO_TOKEN

        record = await self._token_store.find_by_series(payload.series)
        if record is None:
            cookies.clear_token_cookie()
            return _NO_TOKEN

        if not self._token_store.verify_secret(record, payload.token):
            return await self.reject_stolen_token(record=record, cookies=cookies)

        user = await self._users.get_by_id(user_id=record.user_id)
        if user is None or not user.is_active:
            await self._token_store.delete_by_series(record.series)
            cookies.clear_token_cookie()
            logger.info("cookie_token_owner_unavailable user_id=%s", record.user_id)
            return _NO_TOKEN

        rotated = await self._token_store.rotate(record)
        if rotated is None:
            cookies.clear_token_cookie()
            return _NO_TOKEN
        cookies.write_token_cookie(self._codec.encode(series=rotated.series, token=rotated.secret))

        logger.info("cookie_token_login_success user_id=%s", user.user_id)
        await self._append_event(user_id=user.user_id, event_type="cookie_token_login_success")
        return TokenValidationResult(outcome=TokenValidationOutcome.AUTHENTICATED, user=user)

    async def reject_stolen_token(
        self,
        *,
        record: AuthTokenRecord,
        cookies: CookieJarPort,
    ) -> TokenValidationResult:
        """Revoke every series of the owner of a replayed or forged secret."""

        deleted = await self._token_store.delete_all_by_user(record.user_id)
        cookies.clear_token_cookie()
        logger.warning(
            "cookie_token_theft_detected user_id=%s revoked_series=%s",
            record.user_id,
            deleted,
        )
        await self._append_event(
            user_id=record.user_id,
            event_type="cookie_token_theft_detected",
            payload={"revoked_series": deleted},
        )
        return TokenValidationResult(
            outcome=TokenValidationOutcome.REJECTED,
            suspected_user_id=record.user_id,
            warning=self._token_error_message,
        )

    async def _append_event(
        self,
        *,
        user_id: UUID,
        event_type: str,
        payload: dict[str, object] | None = None,
    ) -> None:
        if self._auth_events is None:
            return
        await self._auth_events.append_event(
            AuthEventCreateInput(
                user_id=user_id,
                event_type=event_type,
                payload=dict(payload or {}),
            )
        )
