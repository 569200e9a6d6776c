"""Redirect flow funnelling the per-session token check through one endpoint.

Only the check endpoint needs to see the persistent-login cookie. When
minimization is enabled the first eligible request of a session is redirected
there, validated once, and sent back to where it started:

    IDLE -> REDIRECTING_TO_CHECK -> CHECKED
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from cookie_token_auth.application.ports.cookie_jar_port import CookieJarPort
from cookie_token_auth.application.services.attempt_tracker import (
    RETURN_TO_KEY,
    AttemptTracker,
    SessionContext,
)
from cookie_token_auth.application.services.token_validator import (
    TokenValidationResult,
    TokenValidator,
)
from cookie_token_auth.config.errors import CookieTokenConfigError

DEFAULT_RETURN_TO = "/"
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExposureRequest:
    """Request attributes the redirect flow and its policies look at."""

    path: str
    query: str = ""
    method: str = "GET"
    accept: str | None = None

    @property
    def location(self) -> str:
        return f"{self.path}?{self.query}" if self.query else self.path


class RedirectPolicy(Protocol):
    """Decide whether a request may be diverted through the check endpoint."""

    def should_redirect(self, request: ExposureRequest) -> bool:
        """Return True to perform the check-endpoint redirect for this request."""


class AlwaysRedirectPolicy:
    def should_redirect(self, request: ExposureRequest) -> bool:
        return True


class NeverRedirectPolicy:
    def should_redirect(self, request: ExposureRequest) -> bool:
        return False


class BrowserOnlyRedirectPolicy:
    """Redirect only safe requests from clients that render HTML.

    API clients and form posts cannot be bounced through a redirect without
    losing their request, so they validate inline instead.
    """

    def should_redirect(self, request: ExposureRequest) -> bool:
        if request.method.upper() not in {"GET", "HEAD"}:
            return False
        accept = (request.accept or "").lower()
        return "text/html" in accept


_POLICIES: dict[str, type[RedirectPolicy]] = {
    "always": AlwaysRedirectPolicy,
    "never": NeverRedirectPolicy,
    "browser_only": BrowserOnlyRedirectPolicy,
}


def resolve_redirect_policy(name: str) -> RedirectPolicy:
    """Build the configured redirect policy by name."""

    policy_cls = _POLICIES.get(name.strip().lower())
    if policy_cls is None:
        supported = ", ".join(sorted(_POLICIES))
        raise CookieTokenConfigError(
            f"unknown redirect policy {name!r}; expected one of: {supported}"
        )
    return policy_cls()


def is_safe_return_location(location: str) -> bool:
    """Accept only same-site absolute paths as redirect-back targets."""

    return location.startswith("/") and not location.startswith("//") and "\\" not in location


class ExposureAction(StrEnum):
    """What the host should do with the current request."""

    PROCEED = "proceed"
    REDIRECT_TO_CHECK = "redirect_to_check"
    REDIRECT_BACK = "redirect_back"


@dataclass(frozen=True)
class ExposureDecision:
    """Action for the host plus the validation result, when one ran."""

    action: ExposureAction
    location: str | None = None
    validation: TokenValidationResult | None = None


class ExposureMinimizer:
    """Drive the once-per-session token check inline or via the check endpoint."""

    def __init__(
        self,
        *,
        validator: TokenValidator,
        check_path: str,
        enabled: bool = True,
        policy: RedirectPolicy | None = None,
        attempt_tracker: AttemptTracker | None = None,
    ) -> None:
        if not check_path.startswith("/") or check_path.startswith("//"):
            raise CookieTokenConfigError("check_path must be an absolute path such as /auth/check")
        self._validator = validator
        self._check_path = check_path
        self._enabled = enabled
        self._policy = policy or AlwaysRedirectPolicy()
        self._attempt_tracker = attempt_tracker or AttemptTracker()

    @property
    def check_path(self) -> str:
        return self._check_path

    async def evaluate(
        self,
        *,
        request: ExposureRequest,
        session: SessionContext,
        cookies: CookieJarPort,
    ) -> ExposureDecision:
        """Decide between inline validation, redirecting to the check, or returning from it."""

        if self._attempt_tracker.has_attempted(session):
            return ExposureDecision(action=ExposureAction.PROCEED)

        if not (self._enabled and self._policy.should_redirect(request)):
            validation = await self._validator.validate(session=session, cookies=cookies)
            return ExposureDecision(action=ExposureAction.PROCEED, validation=validation)

        if request.path == self._check_path:
            validation = await self._validator.validate(session=session, cookies=cookies)
            return ExposureDecision(
                action=ExposureAction.REDIRECT_BACK,
                location=self.pop_return_location(session),
                validation=validation,
            )

        if is_safe_return_location(request.location):
            session.set(RETURN_TO_KEY, request.location)
        logger.debug("cookie_token_check_redirect from=%s", request.path)
        return ExposureDecision(action=ExposureAction.REDIRECT_TO_CHECK, location=self._check_path)

    def pop_return_location(self, session: SessionContext) -> str:
        """Consume the location stored before redirecting to the check endpoint."""

        location = session.pop(RETURN_TO_KEY, None)
        if isinstance(location, str) and is_safe_return_location(location):
            return location
        return DEFAULT_RETURN_TO
