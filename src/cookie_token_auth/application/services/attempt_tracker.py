"""Per-session gate bounding persistent-login validation to one attempt."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

ATTEMPTED_KEY = "cookie_token_auth.attempted"
RETURN_TO_KEY = "cookie_token_auth.return_to"


class SessionContext:
    """Explicit view over the host's per-session storage.

    Created by the host from its session mapping at the start of each request,
    and cleared when the session ends (logout or expiry). Nothing in this
    package keeps session state anywhere else.
    """

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self._data = data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def pop(self, key: str, default: Any = None) -> Any:
        return self._data.pop(key, default)

    def clear(self) -> None:
        self._data.clear()


class AttemptTracker:
    """Read and set the session flag recording that token validation ran.

    The check and the set are two separate session operations. Two concurrent
    first requests of one session (e.g. two tabs) may both see the flag unset and
    both validate the same series; the later rotation then overwrites the former,
    and one tab sees a token mismatch on its next attempt. This is an accepted
    usability edge case: no secret is ever accepted twice.
    """

    def has_attempted(self, session: SessionContext) -> bool:
        return bool(session.get(ATTEMPTED_KEY, False))

    def mark_attempted(self, session: SessionContext) -> None:
        session.set(ATTEMPTED_KEY, True)
