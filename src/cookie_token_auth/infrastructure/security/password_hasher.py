"""Bcrypt hasher adapter for passwords and cookie token secrets."""

from __future__ import annotations

import bcrypt

from cookie_token_auth.application.ports.password_hasher_port import PasswordHasherPort

_DEFAULT_ROUNDS = 12


class BcryptPasswordHasher(PasswordHasherPort):
    """Salted one-way hashing using bcrypt."""

    def __init__(self, *, rounds: int = _DEFAULT_ROUNDS) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        encoded = password.encode("utf-8")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        # Malformed stored hashes count as a mismatch.
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
