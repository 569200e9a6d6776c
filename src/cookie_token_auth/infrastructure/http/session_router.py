"""FastAPI router for login, logout, the token check endpoint, and protected pages."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from cookie_token_auth.application.dto.cookie_token_models import CurrentUserResponse
from cookie_token_auth.application.services.auth_service import AuthOutcome, AuthService
from cookie_token_auth.application.services.persistent_login_service import (
    PersistentLoginService,
)
from cookie_token_auth.infrastructure.http.cookie_transport import FernetCookieTransport
from cookie_token_auth.infrastructure.http.persistent_login_gate import (
    FLASH_KEY,
    USER_ID_KEY,
    GateResult,
    PersistentLoginGate,
    session_context,
)

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
logger = logging.getLogger(__name__)


def build_session_router(
    *,
    auth_service: AuthService,
    persistent_login: PersistentLoginService,
    gate: PersistentLoginGate,
    cookie_transport: FernetCookieTransport,
) -> APIRouter:
    """Build router exposing session login pages backed by the persistent-login gate."""

    templates = Jinja2Templates(directory=str(_TEMPLATE_DIR))
    router = APIRouter(tags=["session"])
    check_path = gate.minimizer.check_path

    async def _render_protected_page(request: Request, *, page_title: str) -> Response:
        cookies = cookie_transport.jar_for(request)
        result = await gate.resolve(request, cookies)
        if result.redirect_to is not None:
            return cookies.apply_to(RedirectResponse(url=result.redirect_to, status_code=303))
        if result.user is None:
            return cookies.apply_to(RedirectResponse(url="/login", status_code=303))

        response = templates.TemplateResponse(
            request=request,
            name="home.html",
            context={"page_title": page_title, "user": result.user},
        )
        return cookies.apply_to(response)

    @router.get("/", response_class=HTMLResponse)
    async def render_home_page(request: Request) -> Response:
        return await _render_protected_page(request, page_title="Home")

    @router.get("/dashboard", response_class=HTMLResponse)
    async def render_dashboard_page(request: Request) -> Response:
        return await _render_protected_page(request, page_title="Dashboard")

    @router.get("/me", response_model=CurrentUserResponse)
    async def read_current_user(request: Request) -> Response:
        """Return the resolved user as JSON, honoring the check redirect when required."""

        cookies = cookie_transport.jar_for(request)
        result = await gate.resolve(request, cookies)
        if result.redirect_to is not None:
            return cookies.apply_to(RedirectResponse(url=result.redirect_to, status_code=303))

        body = _current_user_body(result)
        return cookies.apply_to(JSONResponse(body.model_dump(mode="json")))

    @router.get(check_path)
    async def run_token_check(request: Request) -> Response:
        """Validate the token cookie once for this session, then send the browser back."""

        cookies = cookie_transport.jar_for(request)
        result = await gate.resolve(request, cookies)
        location = result.redirect_to or gate.minimizer.pop_return_location(
            session_context(request)
        )
        return cookies.apply_to(RedirectResponse(url=location, status_code=303))

    @router.get("/login", response_class=HTMLResponse)
    async def render_login_page(request: Request) -> Response:
        session = session_context(request)
        return templates.TemplateResponse(
            request=request,
            name="login.html",
            context={"error": session.pop(FLASH_KEY, None)},
        )

    @router.post("/login", response_class=HTMLResponse)
    async def submit_login(
        request: Request,
        email: str = Form(default=""),
        password: str = Form(default=""),
        remember: bool | None = Form(default=None),
    ) -> Response:
        """Authenticate credentials and start a persistent-login series when requested."""

        result = await auth_service.authenticate(
            email=email,
            password=password,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        identification = result.identification
        if result.outcome is not AuthOutcome.SUCCESS or identification is None:
            return templates.TemplateResponse(
                request=request,
                name="login.html",
                context={"error": "Invalid credentials."},
                status_code=401,
            )

        session = session_context(request)
        session.set(USER_ID_KEY, str(identification.user_id))
        cookies = cookie_transport.jar_for(request)
        await persistent_login.on_identified(
            identification=identification,
            cookies=cookies,
            remember=remember,
        )
        return cookies.apply_to(RedirectResponse(url="/dashboard", status_code=303))

    @router.post("/logout")
    async def submit_logout(request: Request) -> Response:
        cookies = cookie_transport.jar_for(request)
        session = session_context(request)
        result = await persistent_login.on_logout(session=session, cookies=cookies)
        if result.warning is not None:
            session.set(FLASH_KEY, result.warning)
        logger.info(
            "session_logout token_series_revoked=%s theft_detected=%s",
            result.revoked_series,
            result.theft_detected,
        )
        return cookies.apply_to(RedirectResponse(url="/login", status_code=303))

    return router


def _current_user_body(result: GateResult) -> CurrentUserResponse:
    if result.user is None:
        return CurrentUserResponse(authenticated=False)
    return CurrentUserResponse(
        authenticated=True,
        user_id=result.user.user_id,
        email=result.user.email,
        display_name=result.user.display_name,
    )

