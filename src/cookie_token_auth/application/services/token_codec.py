"""Serialization of the `(series, token)` pair carried by the persistent-login cookie."""

from __future__ import annotations

from pydantic import ValidationError

from cookie_token_auth.application.dto.cookie_token_models import CookieTokenPayload


class TokenCodec:
    """Encode and decode cookie payload bytes.

    The codec performs no integrity check: the cookie transport is expected to be
    tamper-evident and hands over plaintext only after decrypting it.
    """

    def encode(self, *, series: str, token: str) -> bytes:
        """Serialize one pair to compact JSON bytes."""

        payload = CookieTokenPayload(series=series, token=token)
        return payload.model_dump_json().encode("utf-8")

    def decode(self, raw: bytes | str | None) -> CookieTokenPayload | None:
        """Parse payload bytes, returning None when absent, unparseable, or incomplete."""

        if raw is None:
            return None
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                return None
        if not raw.strip():
            return None

        try:
            return CookieTokenPayload.model_validate_json(raw)
        except ValidationError:
            return None
