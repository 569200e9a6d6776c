"""Primary credential verification used as the "other means" of identification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from cookie_token_auth.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
)
from cookie_token_auth.application.ports.password_hasher_port import PasswordHasherPort
from cookie_token_auth.application.ports.user_repository_port import (
    UserRecord,
    UserRepositoryPort,
)
from cookie_token_auth.domain.auth.credentials import is_blank_password, normalize_login_email
from cookie_token_auth.domain.auth.identification import IdentifiedBy, Identification


class AuthOutcome(StrEnum):
    """Supported credential authentication outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE_USER = "inactive_user"


@dataclass(frozen=True)
class AuthResult:
    """Credential authentication result."""

    outcome: AuthOutcome
    user: UserRecord | None = None

    @property
    def identification(self) -> Identification | None:
        if self.user is None:
            return None
        return Identification(
            user_id=self.user.user_id,
            identified_by=IdentifiedBy.PRIMARY_CREDENTIAL,
        )


class AuthService:
    """Authenticate email/password credentials and append auth audit events."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        auth_events: AuthEventRepositoryPort,
        password_hasher: PasswordHasherPort,
    ) -> None:
        self._users = users
        self._auth_events = auth_events
        self._password_hasher = password_hasher

    async def authenticate(
        self,
        *,
        email: str,
        password: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuthResult:
        """Authenticate credentials and always emit one auth event."""

        try:
            normalized_email = normalize_login_email(email=email)
        except ValueError:
            normalized_email = None

        user = None
        if normalized_email is not None and not is_blank_password(password):
            user = await self._users.get_by_email(email=normalized_email)

        if user is None:
            await self._append(
                user_id=None,
                event_type="login_failed",
                ip_address=ip_address,
                user_agent=user_agent,
                payload={"email": email.strip().lower(), "reason": "invalid_credentials"},
            )
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        if not user.is_active:
            await self._append(
                user_id=user.user_id,
                event_type="login_blocked_inactive",
                ip_address=ip_address,
                user_agent=user_agent,
                payload={"email": user.email},
            )
            return AuthResult(outcome=AuthOutcome.INACTIVE_USER)

        if not self._password_hasher.verify_password(
            password=password,
            password_hash=user.password_hash,
        ):
            await self._append(
                user_id=user.user_id,
                event_type="login_failed",
                ip_address=ip_address,
                user_agent=user_agent,
                payload={"email": user.email, "reason": "invalid_credentials"},
            )
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        await self._append(
            user_id=user.user_id,
            event_type="login_success",
            ip_address=ip_address,
            user_agent=user_agent,
            payload={"email": user.email},
        )
        return AuthResult(outcome=AuthOutcome.SUCCESS, user=user)

    async def _append(
        self,
        *,
        user_id: UUID | None,
        event_type: str,
        ip_address: str | None,
        user_agent: str | None,
        payload: dict[str, object],
    ) -> None:
        await self._auth_events.append_event(
            AuthEventCreateInput(
                user_id=user_id,
                event_type=event_type,
                ip_address=ip_address,
                user_agent=user_agent,
                payload=payload,
            )
        )
