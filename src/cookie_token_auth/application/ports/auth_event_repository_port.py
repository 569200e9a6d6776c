"""Port for append-only authentication audit events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID


@dataclass(frozen=True)
class AuthEventCreateInput:
    """Input payload for one authentication audit event."""

    user_id: UUID | None
    event_type: str
    ip_address: str | None = None
    user_agent: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


class AuthEventRepositoryPort(Protocol):
    """Auth event append contract."""

    async def append_event(self, payload: AuthEventCreateInput) -> int:
        """Persist one auth event and return its id."""
