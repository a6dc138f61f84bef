"""
auth/tokens.py -- Access and refresh token issue and verification.

Security design decisions:
  JWT: python-jose with HS256. Two token classes exist, distinguished only by
       the TokenOptions that sign them:
         access  -- short lifetime, JWT_ACCESS_TOKEN_SECRET, payload {"id": ...}
         refresh -- long lifetime, JWT_REFRESH_TOKEN_SECRET, empty payload
       Both carry iss, iat, exp and a random jti, so two tokens minted in the
       same second for the same user are still distinct strings.

  Verification collapses every failure (bad signature, expired, wrong
       issuer, malformed) into one result: False from is_token_alive(), None
       from decode_access_token(). Callers never learn why a token was
       rejected, so an attacker cannot tell expiry from forgery.

  Options are built once at construction (TokenIssuer.from_settings) and
       never re-read per call.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is the
kernel and has no reverse dependencies.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from core.config import Settings

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenOptions:
    """Signing policy for one token class."""

    secret: str
    expires_in: int  # seconds
    issuer: str


class TokenIssuer:
    """Mints and verifies access and refresh tokens.

    Usage:
        issuer = TokenIssuer.from_settings(get_settings())
        access = issuer.issue_access_token({"id": 1})
        refresh = issuer.issue_refresh_token()
        issuer.is_token_alive(refresh)  # decoded claims, or False
    """

    def __init__(self, access: TokenOptions, refresh: TokenOptions) -> None:
        self.access = access
        self.refresh = refresh

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            access=TokenOptions(
                secret=settings.jwt_access_token_secret,
                expires_in=settings.jwt_access_token_expiration_time,
                issuer=settings.jwt_issuer,
            ),
            refresh=TokenOptions(
                secret=settings.jwt_refresh_token_secret,
                expires_in=settings.jwt_refresh_token_expiration_time,
                issuer=settings.jwt_issuer,
            ),
        )

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue_access_token(self, payload: dict[str, Any]) -> str:
        """Sign payload with the access token options."""
        return _sign(payload, self.access)

    def issue_refresh_token(self) -> str:
        """Sign an empty payload with the refresh token options."""
        return _sign({}, self.refresh)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def is_token_alive(self, token: str | None) -> dict[str, Any] | bool:
        """Verify a refresh token. Returns the decoded claims, or False on any failure."""
        claims = _verify(token, self.refresh)
        return claims if claims is not None else False

    def decode_access_token(self, token: str | None) -> dict[str, Any] | None:
        """Verify an access token. Returns the decoded claims or None on any failure.

        Returning None (rather than raising) keeps the caller simple: any
        invalid token is treated as unauthenticated. A token without the id
        claim is rejected too -- it cannot have been minted by login/refresh.
        """
        claims = _verify(token, self.access)
        if claims is None or "id" not in claims:
            return None
        return claims


def _sign(payload: dict[str, Any], options: TokenOptions) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        **payload,
        "iss": options.issuer,
        "iat": now,
        "exp": now + timedelta(seconds=options.expires_in),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, options.secret, algorithm=_ALGORITHM)


def _verify(token: str | None, options: TokenOptions) -> dict[str, Any] | None:
    if not token:
        return None
    try:
        return jwt.decode(token, options.secret, algorithms=[_ALGORITHM], issuer=options.issuer)
    except JWTError:
        return None
