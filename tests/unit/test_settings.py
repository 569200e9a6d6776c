import pytest
from pydantic import ValidationError

from cookie_token_auth.application.services.token_validator import DEFAULT_TOKEN_ERROR_MESSAGE
from cookie_token_auth.config.settings import Settings

REQUIRED_ENV = {
    "DATABASE_URL": "sqlite+aiosqlite:///./cookie_token_auth.db",
    "SESSION_SECRET": "session-secret",
    "COOKIE_ENCRYPTION_KEY": "ZmRlZmF1bHQta2V5LWZvci10ZXN0cy0wMDAwMDAwMDA=",
}

OPTIONAL_ENV = (
    "COOKIE_TOKEN_NAME",
    "COOKIE_TOKEN_TTL_DAYS",
    "COOKIE_SECURE",
    "MINIMIZE_COOKIE_EXPOSURE",
    "COOKIE_TOKEN_REDIRECT_POLICY",
    "COOKIE_TOKEN_CHECK_PATH",
    "SET_COOKIE_AFTER_IDENTIFY",
    "TOKEN_ERROR_MESSAGE",
    "LOG_LEVEL",
)


def _set_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    for key in OPTIONAL_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
def test_required_env_var_missing_raises_validation_error(
    monkeypatch: pytest.MonkeyPatch,
    missing: str,
) -> None:
    _set_required_env(monkeypatch)
    monkeypatch.delenv(missing, raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_defaults_are_deterministic(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required_env(monkeypatch)

    settings = Settings(_env_file=None)

    assert settings.cookie_token_name == "userdata"
    assert settings.cookie_token_ttl_days == 70
    assert settings.cookie_secure is True
    assert settings.minimize_cookie_exposure is True
    assert settings.cookie_token_redirect_policy == "always"
    assert settings.cookie_token_check_path == "/cookie-token-auth/check"
    assert settings.set_cookie_after_identify is True
    assert settings.token_error_message == DEFAULT_TOKEN_ERROR_MESSAGE
    assert settings.log_level == "INFO"


def test_overrides_are_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required_env(monkeypatch)
    monkeypatch.setenv("COOKIE_TOKEN_TTL_DAYS", "14")
    monkeypatch.setenv("MINIMIZE_COOKIE_EXPOSURE", "false")
    monkeypatch.setenv("COOKIE_TOKEN_REDIRECT_POLICY", "browser_only")
    monkeypatch.setenv("SET_COOKIE_AFTER_IDENTIFY", "0")

    settings = Settings(_env_file=None)

    assert settings.cookie_token_ttl_days == 14
    assert settings.minimize_cookie_exposure is False
    assert settings.cookie_token_redirect_policy == "browser_only"
    assert settings.set_cookie_after_identify is False


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("COOKIE_TOKEN_TTL_DAYS", "0"),
        ("COOKIE_TOKEN_REDIRECT_POLICY", "sometimes"),
        ("COOKIE_TOKEN_CHECK_PATH", "check"),
        ("COOKIE_TOKEN_CHECK_PATH", "//evil.example.org/check"),
        ("COOKIE_TOKEN_NAME", ""),
    ],
)
def test_invalid_values_raise_validation_error(
    monkeypatch: pytest.MonkeyPatch,
    key: str,
    value: str,
) -> None:
    _set_required_env(monkeypatch)
    monkeypatch.setenv(key, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
