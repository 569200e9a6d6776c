"""Pydantic models for the persistent-login cookie payload and HTTP responses."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CookieTokenPayload(BaseModel):
    """Client-held `(series, token)` pair; only meaningful as a whole."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    series: str = Field(min_length=1)
    token: str = Field(min_length=1)


class CurrentUserResponse(BaseModel):
    """JSON view of the user resolved for the current request."""

    model_config = ConfigDict(extra="forbid")

    authenticated: bool
    user_id: UUID | None = None
    email: str | None = None
    display_name: str | None = None
