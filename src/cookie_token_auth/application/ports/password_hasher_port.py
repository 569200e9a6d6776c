"""Port for one-way salted hashing of passwords and token secrets."""

from __future__ import annotations

from typing import Protocol


class PasswordHasherPort(Protocol):
    """Salted hash/verify contract shared by passwords and cookie token secrets."""

    def hash_password(self, password: str) -> str:
        """Hash one plaintext value for storage."""

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Verify a plaintext value against its stored hash in constant time."""
