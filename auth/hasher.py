"""
auth/hasher.py -- bcrypt password hashing with a configurable cost factor.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Layer rule: no imports from api/ or core/. The cost factor is passed in by
the caller (AuthService reads it from Settings.bcrypt_salt).
"""

from __future__ import annotations

import bcrypt

# bcrypt ignores (and recent releases reject) input beyond this many bytes.
MAX_PASSWORD_BYTES = 72


class Hasher:
    """One-way password hash + verify.

    Usage:
        hasher = Hasher(rounds=12)
        hashed = hasher.hash("secret")
        hasher.verify("secret", hashed)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        bcrypt only looks at the first 72 bytes and recent releases raise
        ValueError beyond that. AuthService.signup and the API layer both
        reject longer passwords before they get here.
        """
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False
