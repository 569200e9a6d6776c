"""Shared logging configuration for the web process."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_SECURITY_LOGGER = "cookie_token_auth.application.services.token_validator"


def configure_logging(*, level: str) -> None:
    """Configure process logging; theft warnings are never filtered below WARNING."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)

    logging.basicConfig(
        level=resolved_level,
        format=_LOG_FORMAT,
    )
    security_logger = logging.getLogger(_SECURITY_LOGGER)
    if security_logger.getEffectiveLevel() > logging.WARNING:
        security_logger.setLevel(logging.WARNING)
