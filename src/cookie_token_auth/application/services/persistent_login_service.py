"""Lifecycle hooks the host calls when a user is identified or logs out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cookie_token_auth.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
)
from cookie_token_auth.application.ports.cookie_jar_port import CookieJarPort
from cookie_token_auth.application.services.attempt_tracker import SessionContext
from cookie_token_auth.application.services.token_store import IssuedToken
from cookie_token_auth.application.services.token_validator import TokenValidator
from cookie_token_auth.domain.auth.identification import IdentifiedBy, Identification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogoutResult:
    """Outcome of ending a persistent login; `warning` is set when theft was detected."""

    revoked_series: int = 0
    theft_detected: bool = False
    warning: str | None = None


class PersistentLoginService:
    """Issue a token after other logins and revoke the current one on logout."""

    def __init__(
        self,
        *,
        validator: TokenValidator,
        auth_events: AuthEventRepositoryPort | None = None,
        set_cookie_after_identify: bool = True,
    ) -> None:
        self._validator = validator
        self._auth_events = auth_events
        self._set_cookie_after_identify = set_cookie_after_identify

    async def on_identified(
        self,
        *,
        identification: Identification,
        cookies: CookieJarPort,
        remember: bool | None = None,
    ) -> IssuedToken | None:
        """Start a new series for users identified by anything but a token.

        `remember` overrides the configured default when the login form asks
        explicitly. Token logins are skipped because validation already rotated
        their series.
        """

        if identification.identified_by is IdentifiedBy.PERSISTENT_TOKEN:
            return None
        should_issue = self._set_cookie_after_identify if remember is None else remember
        if not should_issue:
            return None

        issued = await self._validator.token_store.create(identification.user_id)
        cookies.write_token_cookie(
            self._validator.codec.encode(series=issued.series, token=issued.secret)
        )
        if self._auth_events is not None:
            await self._auth_events.append_event(
                AuthEventCreateInput(
                    user_id=identification.user_id,
                    event_type="cookie_token_issued",
                    payload={"identified_by": identification.identified_by.value},
                )
            )
        return issued

    async def on_logout(self, *, session: SessionContext, cookies: CookieJarPort) -> LogoutResult:
        """End the persistent login carried by the cookie, then clear cookie and session.

        A matching secret deletes only its own series. A known series with a
        stale or forged secret gets the same theft response as validation: every
        series of its owner is revoked and the warning is returned to the host.
        """

        result = await self._revoke_cookie_series(cookies)
        cookies.clear_token_cookie()
        session.clear()
        return result

    async def _revoke_cookie_series(self, cookies: CookieJarPort) -> LogoutResult:
        store = self._validator.token_store
        await store.remove_expired()

        payload = self._validator.codec.decode(cookies.read_token_cookie())
        if payload is None:
            return LogoutResult()
        record = await store.find_by_series(payload.series)
        if record is None:
            return LogoutResult()

        if not store.verify_secret(record, payload.token):
            rejection = await self._validator.reject_stolen_token(record=record, cookies=cookies)
            return LogoutResult(theft_detected=True, warning=rejection.warning)

        deleted = await store.delete_by_series(record.series)
        logger.info("cookie_token_series_revoked_on_logout user_id=%s", record.user_id)
        return LogoutResult(revoked_series=int(deleted))
