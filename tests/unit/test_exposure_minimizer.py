from __future__ import annotations

import pytest
from persistent_login_fakes import (
    FakeAuthTokenRepository,
    FakeClock,
    FakeCookieJar,
    FakeUserRepository,
    make_token_store,
    make_user,
)

from cookie_token_auth.application.ports.user_repository_port import UserRecord
from cookie_token_auth.application.services.attempt_tracker import (
    ATTEMPTED_KEY,
    RETURN_TO_KEY,
    SessionContext,
)
from cookie_token_auth.application.services.exposure_minimizer import (
    AlwaysRedirectPolicy,
    BrowserOnlyRedirectPolicy,
    ExposureAction,
    ExposureMinimizer,
    ExposureRequest,
    NeverRedirectPolicy,
    RedirectPolicy,
    is_safe_return_location,
    resolve_redirect_policy,
)
from cookie_token_auth.application.services.token_codec import TokenCodec
from cookie_token_auth.application.services.token_store import TokenStore
from cookie_token_auth.application.services.token_validator import (
    TokenValidationOutcome,
    TokenValidator,
)
from cookie_token_auth.config.errors import CookieTokenConfigError

CHECK_PATH = "/cookie-token-auth/check"


def _build(
    user: UserRecord,
    *,
    enabled: bool = True,
    policy: RedirectPolicy | None = None,
) -> tuple[ExposureMinimizer, TokenStore, FakeAuthTokenRepository]:
    repository = FakeAuthTokenRepository(FakeClock())
    store = make_token_store(repository)
    validator = TokenValidator(token_store=store, users=FakeUserRepository(user))
    minimizer = ExposureMinimizer(
        validator=validator,
        check_path=CHECK_PATH,
        enabled=enabled,
        policy=policy,
    )
    return minimizer, store, repository


def _cookie() -> FakeCookieJar:
    return FakeCookieJar(TokenCodec().encode(series="S1", token="s1"))


@pytest.mark.asyncio
async def test_first_request_redirects_to_check_without_reading_cookie() -> None:
    user = make_user()
    minimizer, store, repository = _build(user)
    await store.create(user.user_id)
    repository.calls.clear()
    session = SessionContext({})
    cookies = _cookie()

    decision = await minimizer.evaluate(
        request=ExposureRequest(path="/reports", query="page=2"),
        session=session,
        cookies=cookies,
    )

    assert decision.action is ExposureAction.REDIRECT_TO_CHECK
    assert decision.location == CHECK_PATH
    assert decision.validation is None
    assert session.get(RETURN_TO_KEY) == "/reports?page=2"
    assert session.get(ATTEMPTED_KEY) is None
    assert cookies.reads == 0
    assert repository.calls == []


@pytest.mark.asyncio
async def test_check_endpoint_validates_and_returns_to_original_location() -> None:
    user = make_user()
    minimizer, store, _ = _build(user)
    await store.create(user.user_id)
    session = SessionContext({})
    cookies = _cookie()

    await minimizer.evaluate(
        request=ExposureRequest(path="/reports"),
        session=session,
        cookies=cookies,
    )
    decision = await minimizer.evaluate(
        request=ExposureRequest(path=CHECK_PATH),
        session=session,
        cookies=cookies,
    )

    assert decision.action is ExposureAction.REDIRECT_BACK
    assert decision.location == "/reports"
    assert decision.validation is not None
    assert decision.validation.outcome is TokenValidationOutcome.AUTHENTICATED
    assert session.get(RETURN_TO_KEY) is None


@pytest.mark.asyncio
async def test_requests_after_check_proceed_without_redirect() -> None:
    user = make_user()
    minimizer, store, repository = _build(user)
    await store.create(user.user_id)
    session = SessionContext({})
    cookies = _cookie()
    await minimizer.evaluate(
        request=ExposureRequest(path=CHECK_PATH),
        session=session,
        cookies=cookies,
    )
    repository.calls.clear()
    reads_after_check = cookies.reads

    decision = await minimizer.evaluate(
        request=ExposureRequest(path="/reports"),
        session=session,
        cookies=cookies,
    )

    assert decision.action is ExposureAction.PROCEED
    assert decision.validation is None
    assert cookies.reads == reads_after_check
    assert repository.calls == []


@pytest.mark.asyncio
async def test_direct_check_visit_without_stored_location_returns_home() -> None:
    user = make_user()
    minimizer, _, _ = _build(user)

    decision = await minimizer.evaluate(
        request=ExposureRequest(path=CHECK_PATH),
        session=SessionContext({}),
        cookies=FakeCookieJar(),
    )

    assert decision.action is ExposureAction.REDIRECT_BACK
    assert decision.location == "/"
    assert decision.validation is not None
    assert decision.validation.outcome is TokenValidationOutcome.NO_TOKEN


@pytest.mark.asyncio
async def test_disabled_minimization_validates_inline_on_first_request() -> None:
    user = make_user()
    minimizer, store, _ = _build(user, enabled=False)
    await store.create(user.user_id)
    session = SessionContext({})

    decision = await minimizer.evaluate(
        request=ExposureRequest(path="/reports"),
        session=session,
        cookies=_cookie(),
    )

    assert decision.action is ExposureAction.PROCEED
    assert decision.validation is not None
    assert decision.validation.outcome is TokenValidationOutcome.AUTHENTICATED
    assert session.get(RETURN_TO_KEY) is None


@pytest.mark.asyncio
async def test_policy_declining_redirect_validates_inline() -> None:
    user = make_user()
    minimizer, store, _ = _build(user, policy=BrowserOnlyRedirectPolicy())
    await store.create(user.user_id)

    decision = await minimizer.evaluate(
        request=ExposureRequest(path="/me", accept="application/json"),
        session=SessionContext({}),
        cookies=_cookie(),
    )

    assert decision.action is ExposureAction.PROCEED
    assert decision.validation is not None
    assert decision.validation.outcome is TokenValidationOutcome.AUTHENTICATED


@pytest.mark.asyncio
async def test_unsafe_location_is_not_stored_for_redirect_back() -> None:
    user = make_user()
    minimizer, _, _ = _build(user)
    session = SessionContext({})

    await minimizer.evaluate(
        request=ExposureRequest(path="//evil.example.org/x"),
        session=session,
        cookies=FakeCookieJar(),
    )

    assert session.get(RETURN_TO_KEY) is None
    assert minimizer.pop_return_location(session) == "/"


@pytest.mark.parametrize(
    ("request_", "expected"),
    [
        (ExposureRequest(path="/", accept="text/html,application/xhtml+xml"), True),
        (ExposureRequest(path="/", method="HEAD", accept="text/html"), True),
        (ExposureRequest(path="/", accept="application/json"), False),
        (ExposureRequest(path="/", accept=None), False),
        (ExposureRequest(path="/login", method="POST", accept="text/html"), False),
    ],
)
def test_browser_only_policy(request_: ExposureRequest, expected: bool) -> None:
    assert BrowserOnlyRedirectPolicy().should_redirect(request_) is expected


def test_resolve_redirect_policy_by_name() -> None:
    assert isinstance(resolve_redirect_policy("always"), AlwaysRedirectPolicy)
    assert isinstance(resolve_redirect_policy(" Never "), NeverRedirectPolicy)
    assert isinstance(resolve_redirect_policy("browser_only"), BrowserOnlyRedirectPolicy)


def test_resolve_redirect_policy_rejects_unknown_name() -> None:
    with pytest.raises(CookieTokenConfigError, match="unknown redirect policy"):
        resolve_redirect_policy("sometimes")


@pytest.mark.parametrize(
    ("location", "expected"),
    [
        ("/dashboard", True),
        ("/reports?page=2", True),
        ("//evil.example.org", False),
        ("https://evil.example.org", False),
        ("/\\evil.example.org", False),
        ("", False),
    ],
)
def test_is_safe_return_location(location: str, expected: bool) -> None:
    assert is_safe_return_location(location) is expected


def test_check_path_must_be_absolute() -> None:
    user = make_user()
    validator = TokenValidator(
        token_store=make_token_store(FakeAuthTokenRepository(FakeClock())),
        users=FakeUserRepository(user),
    )

    with pytest.raises(CookieTokenConfigError):
        ExposureMinimizer(validator=validator, check_path="cookie-token-auth/check")
