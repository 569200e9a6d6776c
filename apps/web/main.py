"""Web entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.sessions import SessionMiddleware

from cookie_token_auth.application.ports.password_hasher_port import PasswordHasherPort
from cookie_token_auth.application.services.auth_service import AuthService
from cookie_token_auth.application.services.exposure_minimizer import (
    ExposureMinimizer,
    resolve_redirect_policy,
)
from cookie_token_auth.application.services.persistent_login_service import (
    PersistentLoginService,
)
from cookie_token_auth.application.services.token_store import TokenStore
from cookie_token_auth.application.services.token_validator import TokenValidator
from cookie_token_auth.config.settings import Settings, load_settings
from cookie_token_auth.infrastructure.db.auth_event_repository import (
    SqlAlchemyAuthEventRepository,
)
from cookie_token_auth.infrastructure.db.auth_token_repository import (
    SqlAlchemyAuthTokenRepository,
)
from cookie_token_auth.infrastructure.db.session import create_session_factory
from cookie_token_auth.infrastructure.db.user_repository import SqlAlchemyUserRepository
from cookie_token_auth.infrastructure.http.cookie_transport import FernetCookieTransport
from cookie_token_auth.infrastructure.http.persistent_login_gate import PersistentLoginGate
from cookie_token_auth.infrastructure.http.session_router import build_session_router
from cookie_token_auth.infrastructure.logging import configure_logging
from cookie_token_auth.infrastructure.security.password_hasher import BcryptPasswordHasher

WEB_HOST = "0.0.0.0"
WEB_PORT = 8000
SESSION_COOKIE_NAME = "session"
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistentLoginComponents:
    """Wired persistent-login services sharing one token store."""

    validator: TokenValidator
    minimizer: ExposureMinimizer
    persistent_login: PersistentLoginService


def build_persistent_login(
    *,
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    password_hasher: PasswordHasherPort,
) -> PersistentLoginComponents:
    """Build validator, redirect flow, and lifecycle hooks from settings.

    Raises `CookieTokenConfigError` for invalid policy or check path.
    """

    auth_events = SqlAlchemyAuthEventRepository(session_factory)
    token_store = TokenStore(
        repository=SqlAlchemyAuthTokenRepository(session_factory),
        hasher=password_hasher,
        token_ttl=timedelta(days=settings.cookie_token_ttl_days),
    )
    validator = TokenValidator(
        token_store=token_store,
        users=SqlAlchemyUserRepository(session_factory),
        auth_events=auth_events,
        token_error_message=settings.token_error_message,
    )
    minimizer = ExposureMinimizer(
        validator=validator,
        check_path=settings.cookie_token_check_path,
        enabled=settings.minimize_cookie_exposure,
        policy=resolve_redirect_policy(settings.cookie_token_redirect_policy),
    )
    persistent_login = PersistentLoginService(
        validator=validator,
        auth_events=auth_events,
        set_cookie_after_identify=settings.set_cookie_after_identify,
    )
    return PersistentLoginComponents(
        validator=validator,
        minimizer=minimizer,
        persistent_login=persistent_login,
    )


def create_app(
    *,
    settings: Settings | None = None,
    password_hasher: PasswordHasherPort | None = None,
) -> FastAPI:
    """Create FastAPI app for session login with persistent-login cookies."""

    if settings is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
    if password_hasher is None:
        password_hasher = BcryptPasswordHasher()

    session_factory = create_session_factory(settings.database_url)
    components = build_persistent_login(
        settings=settings,
        session_factory=session_factory,
        password_hasher=password_hasher,
    )
    cookie_transport = FernetCookieTransport(
        encryption_key=settings.cookie_encryption_key,
        cookie_name=settings.cookie_token_name,
        max_age_seconds=int(timedelta(days=settings.cookie_token_ttl_days).total_seconds()),
        secure=settings.cookie_secure,
    )
    users = SqlAlchemyUserRepository(session_factory)
    auth_service = AuthService(
        users=users,
        auth_events=SqlAlchemyAuthEventRepository(session_factory),
        password_hasher=password_hasher,
    )
    gate = PersistentLoginGate(
        minimizer=components.minimizer,
        persistent_login=components.persistent_login,
        users=users,
    )

    app = FastAPI()
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=None,
        same_site="lax",
        https_only=settings.cookie_secure,
    )
    app.include_router(
        build_session_router(
            auth_service=auth_service,
            persistent_login=components.persistent_login,
            gate=gate,
            cookie_transport=cookie_transport,
        )
    )
    logger.info(
        "web_app_created minimize_cookie_exposure=%s redirect_policy=%s check_path=%s",
        settings.minimize_cookie_exposure,
        settings.cookie_token_redirect_policy,
        settings.cookie_token_check_path,
    )
    return app


def run_asgi_server(*, host: str = WEB_HOST, port: int = WEB_PORT) -> None:
    """Run web as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.web.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run web runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
