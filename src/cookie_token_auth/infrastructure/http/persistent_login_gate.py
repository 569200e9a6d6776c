"""Per-request resolution of the current user from session or persistent-login cookie."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from starlette.requests import Request

from cookie_token_auth.application.ports.user_repository_port import (
    UserRecord,
    UserRepositoryPort,
)
from cookie_token_auth.application.services.attempt_tracker import SessionContext
from cookie_token_auth.application.services.exposure_minimizer import (
    ExposureAction,
    ExposureMinimizer,
    ExposureRequest,
)
from cookie_token_auth.application.services.persistent_login_service import (
    PersistentLoginService,
)
from cookie_token_auth.application.services.token_validator import TokenValidationOutcome
from cookie_token_auth.domain.auth.identification import IdentifiedBy, Identification
from cookie_token_auth.infrastructure.http.cookie_transport import RequestCookieJar

USER_ID_KEY = "user_id"
FLASH_KEY = "flash_error"
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateResult:
    """Resolved user, or where to redirect first, for one request."""

    user: UserRecord | None = None
    redirect_to: str | None = None
    warning: str | None = None


def session_context(request: Request) -> SessionContext:
    return SessionContext(request.session)


def exposure_request(request: Request) -> ExposureRequest:
    return ExposureRequest(
        path=request.url.path,
        query=request.url.query,
        method=request.method,
        accept=request.headers.get("accept"),
    )


class PersistentLoginGate:
    """Resolve the logged-in user, running the token check when the session has none."""

    def __init__(
        self,
        *,
        minimizer: ExposureMinimizer,
        persistent_login: PersistentLoginService,
        users: UserRepositoryPort,
    ) -> None:
        self._minimizer = minimizer
        self._persistent_login = persistent_login
        self._users = users

    @property
    def minimizer(self) -> ExposureMinimizer:
        return self._minimizer

    async def resolve(self, request: Request, cookies: RequestCookieJar) -> GateResult:
        session = session_context(request)
        user = await self._session_user(session)
        if user is not None:
            return GateResult(user=user)

        decision = await self._minimizer.evaluate(
            request=exposure_request(request),
            session=session,
            cookies=cookies,
        )
        warning = None
        validation = decision.validation
        if validation is not None and validation.outcome is TokenValidationOutcome.AUTHENTICATED:
            assert validation.user is not None
            user = validation.user
            session.set(USER_ID_KEY, str(user.user_id))
            await self._persistent_login.on_identified(
                identification=Identification(
                    user_id=user.user_id,
                    identified_by=IdentifiedBy.PERSISTENT_TOKEN,
                ),
                cookies=cookies,
            )
        elif validation is not None and validation.outcome is TokenValidationOutcome.REJECTED:
            warning = validation.warning
            session.set(FLASH_KEY, warning)

        if decision.action is ExposureAction.PROCEED:
            return GateResult(user=user, warning=warning)
        return GateResult(user=user, redirect_to=decision.location, warning=warning)

    async def _session_user(self, session: SessionContext) -> UserRecord | None:
        raw_user_id = session.get(USER_ID_KEY)
        if not isinstance(raw_user_id, str):
            return None
        try:
            user_id = UUID(raw_user_id)
        except ValueError:
            session.pop(USER_ID_KEY)
            return None

        user = await self._users.get_by_id(user_id=user_id)
        if user is None or not user.is_active:
            logger.info("session_user_unavailable user_id=%s", user_id)
            session.pop(USER_ID_KEY)
            return None
        return user
