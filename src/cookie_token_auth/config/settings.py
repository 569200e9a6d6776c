"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cookie_token_auth.application.services.token_validator import DEFAULT_TOKEN_ERROR_MESSAGE

NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveInt = Annotated[int, Field(gt=0)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    session_secret: NonEmptyStr = Field(validation_alias="SESSION_SECRET")
    cookie_encryption_key: NonEmptyStr = Field(validation_alias="COOKIE_ENCRYPTION_KEY")
    cookie_token_name: NonEmptyStr = Field(
        default="userdata",
        validation_alias="COOKIE_TOKEN_NAME",
    )
    cookie_token_ttl_days: PositiveInt = Field(
        default=70,
        validation_alias="COOKIE_TOKEN_TTL_DAYS",
    )
    cookie_secure: bool = Field(default=True, validation_alias="COOKIE_SECURE")
    minimize_cookie_exposure: bool = Field(
        default=True,
        validation_alias="MINIMIZE_COOKIE_EXPOSURE",
    )
    cookie_token_redirect_policy: Literal["always", "never", "browser_only"] = Field(
        default="always",
        validation_alias="COOKIE_TOKEN_REDIRECT_POLICY",
    )
    cookie_token_check_path: NonEmptyStr = Field(
        default="/cookie-token-auth/check",
        validation_alias="COOKIE_TOKEN_CHECK_PATH",
    )
    set_cookie_after_identify: bool = Field(
        default=True,
        validation_alias="SET_COOKIE_AFTER_IDENTIFY",
    )
    token_error_message: NonEmptyStr = Field(
        default=DEFAULT_TOKEN_ERROR_MESSAGE,
        validation_alias="TOKEN_ERROR_MESSAGE",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("cookie_token_check_path")
    @classmethod
    def _require_absolute_check_path(cls, value: str) -> str:
        if not value.startswith("/") or value.startswith("//"):
            raise ValueError("COOKIE_TOKEN_CHECK_PATH must start with a single '/'")
        return value


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
