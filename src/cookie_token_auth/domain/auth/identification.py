"""Tagged identification results shared by login paths."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class IdentifiedBy(StrEnum):
    """Authentication path that established the user's identity."""

    PRIMARY_CREDENTIAL = "primary_credential"
    PERSISTENT_TOKEN = "persistent_token"


@dataclass(frozen=True)
class Identification:
    """One successful identification and the path that produced it."""

    user_id: UUID
    identified_by: IdentifiedBy
