"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic apart from the
credential-stripping projection). Stores and the service do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account as persisted by the credential store.

    access_token / refresh_token hold the last-issued pair. They are None
    until the first login and are overwritten wholesale on every login or
    refresh -- no token history is kept.
    """

    username: str
    hashed_password: str
    id: int | None = None
    name: str | None = None
    email: str | None = None
    url: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_public(self) -> PublicUser:
        """Project the record onto its non-credential fields."""
        return PublicUser(
            id=self.id,
            username=self.username,
            name=self.name,
            email=self.email,
            url=self.url,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass(frozen=True)
class PublicUser:
    """A user record with the password hash and both tokens stripped."""

    id: int
    username: str
    name: str | None = None
    email: str | None = None
    url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class LoginResult:
    """What login and refresh hand back. The refresh token stays in the store."""

    id: int
    username: str
    access_token: str
