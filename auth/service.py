"""
auth/service.py -- Signup, credential validation, login and token refresh.

Lifecycle of one credential:

    UNVERIFIED --validate_credentials--> VALIDATED --login--> LOGGED_IN
                                                     LOGGED_IN <--refresh--> REFRESHED

Security design decisions:
  [C1] validate_credentials() returns None for both "no such user" and
       "wrong password", and runs bcrypt in both cases (against a dummy hash
       when the user is absent) so neither the result nor the response time
       reveals whether the account exists. The caller maps None to one
       uniform 401, never to a 404.

  Refresh looks the user up by (id, access_token) in one query, so only the
       access token currently on record can be exchanged. It then checks the
       stored refresh token is still alive and mints a new access token. The
       refresh token itself is NOT rotated and the superseded access token is
       NOT revoked; it stays valid until its own exp. Known gap, kept as is.

  No locks: concurrent logins or refreshes for the same user are
       last-writer-wins on the stored token pair.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import AuthStateError, ConflictError, UnauthorizedError
from auth.hasher import MAX_PASSWORD_BYTES, Hasher
from auth.models import LoginResult, PublicUser, User
from auth.store import CredentialStore
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings

logger = logging.getLogger("passgate.auth")

_SIGNUP_FIELDS = ("name", "email", "url")


class AuthService:
    """Orchestrates the credential store, hasher and token issuer.

    Configuration is read once here: the token options and bcrypt cost are
    fixed for the lifetime of the instance.
    """

    def __init__(
        self,
        store: CredentialStore,
        settings: Settings | None = None,
        issuer: TokenIssuer | None = None,
        hasher: Hasher | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.issuer = issuer or TokenIssuer.from_settings(settings)
        self.hasher = hasher or Hasher(rounds=settings.bcrypt_salt)
        # Timing equalization dummy hash [C1]. Computed once so the first
        # unknown-username attempt is not measurably slower than later ones.
        self._dummy_hash = self.hasher.hash("passgate_timing_dummy")

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    def signup(self, username: str, password: str, **fields: str | None) -> int:
        """Create a user and return its id.

        Args:
            username: Must not already exist.
            password: Plaintext; only the bcrypt hash is stored.
            **fields: Optional profile fields -- name, email, url.

        Raises:
            ConflictError: the username is taken. Nothing is written.
            TypeError: an unknown profile field was passed.
            ValueError: the password is longer than bcrypt accepts
                (MAX_PASSWORD_BYTES of UTF-8).
        """
        unknown = set(fields) - set(_SIGNUP_FIELDS)
        if unknown:
            raise TypeError(f"Unknown signup fields: {sorted(unknown)!r}")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        if self.store.find_by_username(username) is not None:
            logger.warning("Signup rejected: username %r already exists", username)
            raise ConflictError()

        user = User(username=username, hashed_password=self.hasher.hash(password), **fields)
        try:
            user_id = self.store.create(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same username.
            logger.warning("Signup rejected: username %r already exists", username)
            raise ConflictError() from exc

        logger.info("User created: id=%s username=%r", user_id, username)
        return user_id

    # ------------------------------------------------------------------
    # Credential validation
    # ------------------------------------------------------------------

    def validate_credentials(self, username: str, password: str) -> PublicUser | None:
        """Return the user without credential fields, or None on any failure [C1]."""
        user = self.store.find_by_username(username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.verify(password, self._dummy_hash)
            return None
        if not self.hasher.verify(password, user.hashed_password):
            return None
        return user.to_public()

    # ------------------------------------------------------------------
    # Token issue
    # ------------------------------------------------------------------

    def login(self, username: str) -> LoginResult:
        """Mint and store a fresh token pair for an already-validated user.

        The password is not re-checked here; call validate_credentials()
        first. The refresh token is persisted only, never returned.

        Raises:
            AuthStateError: the user disappeared after validation.
        """
        user = self.store.find_by_username(username)
        if user is None:
            logger.error("Login for %r failed: user vanished after validation", username)
            raise AuthStateError()

        access_token = self.issuer.issue_access_token({"id": user.id})
        refresh_token = self.issuer.issue_refresh_token()
        self.store.update_tokens(user.id, access_token, refresh_token)

        logger.info("Login: id=%s", user.id)
        return LoginResult(id=user.id, username=user.username, access_token=access_token)

    def refresh(self, user_id: int, access_token: str) -> LoginResult:
        """Exchange the current access token for a new one.

        Raises:
            UnauthorizedError: access_token is not the one on record for
                user_id, or the stored refresh token is no longer alive.
        """
        user = self.store.find_by_id_and_token(user_id, access_token) if access_token else None
        if user is None:
            logger.warning("Refresh rejected: id=%s", user_id)
            raise UnauthorizedError()

        if not self.issuer.is_token_alive(user.refresh_token):
            logger.warning("Refresh rejected: id=%s", user_id)
            raise UnauthorizedError()

        new_access_token = self.issuer.issue_access_token({"id": user.id})
        self.store.update_tokens(user.id, new_access_token, user.refresh_token)
        # TODO: push the superseded access token onto a revocation list once a
        # shared cache is available; it may still be unexpired here.

        logger.info("Refresh: id=%s", user.id)
        return LoginResult(id=user.id, username=user.username, access_token=new_access_token)
