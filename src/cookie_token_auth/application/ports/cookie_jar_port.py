"""Port for reading and writing the persistent-login cookie."""

from __future__ import annotations

from typing import Protocol


class CookieJarPort(Protocol):
    """Transport for the token cookie of the current request/response pair.

    Implementations own confidentiality and integrity of the value; callers hand
    over and receive plaintext payload bytes.
    """

    def read_token_cookie(self) -> bytes | None:
        """Return the decrypted payload, or None when absent or not decryptable."""

    def write_token_cookie(self, payload: bytes) -> None:
        """Schedule the cookie to be set to `payload` on the response."""

    def clear_token_cookie(self) -> None:
        """Schedule the cookie to be deleted on the response."""
