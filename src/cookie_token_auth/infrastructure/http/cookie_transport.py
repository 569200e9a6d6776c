"""Encrypted transport of the persistent-login cookie over Starlette requests."""

from __future__ import annotations

from typing import Literal

from cryptography.fernet import Fernet, InvalidToken
from starlette.requests import Request
from starlette.responses import Response

from cookie_token_auth.application.ports.cookie_jar_port import CookieJarPort
from cookie_token_auth.config.errors import CookieTokenConfigError

COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"


class FernetCookieTransport:
    """Authenticated encryption and attributes for the token cookie."""

    def __init__(
        self,
        *,
        encryption_key: str,
        cookie_name: str,
        max_age_seconds: int,
        secure: bool,
    ) -> None:
        try:
            self._fernet = Fernet(encryption_key.encode("utf-8"))
        except (TypeError, ValueError) as exc:
            raise CookieTokenConfigError(
                "COOKIE_ENCRYPTION_KEY must be a url-safe base64-encoded 32-byte key"
            ) from exc
        if not cookie_name.strip():
            raise CookieTokenConfigError("cookie name cannot be blank")
        self.cookie_name = cookie_name
        self.max_age_seconds = max_age_seconds
        self.secure = secure

    def jar_for(self, request: Request) -> RequestCookieJar:
        """Bind the transport to one request; apply the jar to the response afterwards."""

        return RequestCookieJar(transport=self, raw_value=request.cookies.get(self.cookie_name))

    def encrypt(self, payload: bytes) -> str:
        return self._fernet.encrypt(payload).decode("ascii")

    def decrypt(self, value: str) -> bytes | None:
        """Return plaintext, or None for tampered, foreign, or transport-expired values."""

        try:
            return self._fernet.decrypt(value.encode("ascii"), ttl=self.max_age_seconds)
        except (InvalidToken, UnicodeEncodeError):
            return None


class RequestCookieJar(CookieJarPort):
    """Cookie jar for one request that buffers writes until `apply_to` is called."""

    def __init__(self, *, transport: FernetCookieTransport, raw_value: str | None) -> None:
        self._transport = transport
        self._raw_value = raw_value
        self._pending: bytes | None = None
        self._cleared = False

    def read_token_cookie(self) -> bytes | None:
        if self._pending is not None:
            return self._pending
        if self._cleared or not self._raw_value:
            return None
        return self._transport.decrypt(self._raw_value)

    def write_token_cookie(self, payload: bytes) -> None:
        self._pending = payload
        self._cleared = False

    def clear_token_cookie(self) -> None:
        self._pending = None
        self._cleared = True

    def apply_to(self, response: Response) -> Response:
        """Write buffered cookie changes onto the outgoing response."""

        transport = self._transport
        if self._pending is not None:
            response.set_cookie(
                key=transport.cookie_name,
                value=transport.encrypt(self._pending),
                max_age=transport.max_age_seconds,
                path=COOKIE_PATH,
                secure=transport.secure,
                httponly=True,
                samesite=COOKIE_SAMESITE,
            )
        elif self._cleared:
            response.delete_cookie(
                key=transport.cookie_name,
                path=COOKIE_PATH,
                secure=transport.secure,
                httponly=True,
                samesite=COOKIE_SAMESITE,
            )
        return response
