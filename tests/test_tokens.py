"""Unit tests for auth/tokens.py -- token issue and verification.

Covers:
- a refresh token is alive right after issue; claims carry iss/iat/exp/jti
- access tokens carry their payload and verify only against the access secret
- every failure cause (expired, wrong secret, tampered, wrong issuer,
  malformed) yields exactly False from is_token_alive()
- two tokens minted back to back are distinct strings
- TokenIssuer.from_settings() builds two separate option structs
"""

from dataclasses import FrozenInstanceError

import pytest

from auth.tokens import TokenIssuer, TokenOptions
from core.config import get_settings

ISSUER = "passgate-test"
ACCESS_SECRET = "a" * 40
REFRESH_SECRET = "r" * 40


def _issuer(refresh_expires_in: int = 3600, issuer: str = ISSUER, refresh_secret: str = REFRESH_SECRET) -> TokenIssuer:
    return TokenIssuer(
        access=TokenOptions(secret=ACCESS_SECRET, expires_in=60, issuer=issuer),
        refresh=TokenOptions(secret=refresh_secret, expires_in=refresh_expires_in, issuer=issuer),
    )


@pytest.fixture
def issuer() -> TokenIssuer:
    return _issuer()


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


def test_refresh_token_alive_after_issue(issuer):
    claims = issuer.is_token_alive(issuer.issue_refresh_token())
    assert claims
    assert claims["iss"] == ISSUER
    assert claims["exp"] > claims["iat"]
    assert claims["jti"]
    assert "id" not in claims


def test_access_token_carries_payload(issuer):
    claims = issuer.decode_access_token(issuer.issue_access_token({"id": 7}))
    assert claims is not None
    assert claims["id"] == 7
    assert claims["iss"] == ISSUER
    assert claims["exp"] - claims["iat"] == 60


def test_payload_cannot_override_registered_claims(issuer):
    token = issuer.issue_access_token({"id": 1, "iss": "evil", "exp": 9999999999})
    claims = issuer.decode_access_token(token)
    assert claims["iss"] == ISSUER
    assert claims["exp"] - claims["iat"] == 60


def test_tokens_minted_back_to_back_are_distinct(issuer):
    assert issuer.issue_access_token({"id": 1}) != issuer.issue_access_token({"id": 1})
    assert issuer.issue_refresh_token() != issuer.issue_refresh_token()


# ---------------------------------------------------------------------------
# Secret separation
# ---------------------------------------------------------------------------


def test_access_token_is_not_alive_as_refresh_token(issuer):
    assert issuer.is_token_alive(issuer.issue_access_token({"id": 1})) is False


def test_refresh_token_is_rejected_as_access_token(issuer):
    assert issuer.decode_access_token(issuer.issue_refresh_token()) is None


def test_access_token_without_id_claim_is_rejected(issuer):
    assert issuer.decode_access_token(issuer.issue_access_token({})) is None


# ---------------------------------------------------------------------------
# Failure causes all collapse to False
# ---------------------------------------------------------------------------


def test_expired_refresh_token_is_not_alive():
    expired = _issuer(refresh_expires_in=-10)
    assert expired.is_token_alive(expired.issue_refresh_token()) is False


def test_refresh_token_signed_with_other_secret_is_not_alive(issuer):
    other = _issuer(refresh_secret="x" * 40)
    assert issuer.is_token_alive(other.issue_refresh_token()) is False


def test_tampered_refresh_token_is_not_alive(issuer):
    header, payload, _ = issuer.issue_refresh_token().split(".")
    _, _, signature = issuer.issue_refresh_token().split(".")
    assert issuer.is_token_alive(f"{header}.{payload}.{signature}") is False


def test_refresh_token_from_other_issuer_is_not_alive(issuer):
    foreign = _issuer(issuer="someone-else")
    assert issuer.is_token_alive(foreign.issue_refresh_token()) is False


@pytest.mark.parametrize("token", ["forged-token", "a.b.c", "", None])
def test_malformed_token_is_not_alive(issuer, token):
    assert issuer.is_token_alive(token) is False
    assert issuer.decode_access_token(token) is None


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_from_settings_builds_separate_options():
    settings = get_settings()
    built = TokenIssuer.from_settings(settings)
    assert built.access.secret == settings.jwt_access_token_secret
    assert built.refresh.secret == settings.jwt_refresh_token_secret
    assert built.access.expires_in == settings.jwt_access_token_expiration_time
    assert built.refresh.expires_in == settings.jwt_refresh_token_expiration_time
    assert built.access.issuer == built.refresh.issuer == settings.jwt_issuer


def test_token_options_are_immutable(issuer):
    with pytest.raises(FrozenInstanceError):
        issuer.access.secret = "changed"
