"""Setup-time configuration errors."""

from __future__ import annotations


class CookieTokenConfigError(ValueError):
    """Raised while wiring the app when persistent-login configuration is invalid."""
