"""Normalization helpers for login form inputs."""

from __future__ import annotations


def normalize_login_email(*, email: str) -> str:
    """Lowercase and trim one login email, rejecting blank or address-less values."""

    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("email cannot be blank")
    if "@" not in normalized:
        raise ValueError("email must contain '@'")
    return normalized


def is_blank_password(password: str) -> bool:
    return not password.strip()
