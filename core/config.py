"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for passgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_issuer -> JWT_ISSUER). Type coercion and validation are built in.

  @field_validator(mode="before"): expiration times accept either a plain
      number of seconds or a short duration string ("30s", "15m", "1h", "7d"),
      the same forms the token options have always been written in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Dev mode generates missing token secrets with a warning,
      production mode refuses to start without them.

Security notes:
  [M6] Token secrets shorter than 32 chars are rejected outright. HS256
       signing relies on key entropy -- a short key weakens it.

  [M7] In production mode (DEBUG not set or false), a missing secret is a
       hard startup failure.

  [M8] The access and refresh secrets must differ. With a shared secret a
       refresh token would verify as an access token and vice versa.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import re
import secrets
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("passgate.config")

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: int | str) -> int:
    """Convert a token lifetime to seconds.

    Accepts an int (seconds), a digit string ("3600") or a digit string with
    a single unit suffix: s, m, h, d ("15m", "7d"). Raises ValueError for
    anything else, including zero and negative values.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        seconds = value
    else:
        match = _DURATION_RE.match(str(value).lower())
        if match is None:
            raise ValueError(f"Invalid duration: {value!r}")
        seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive, got {value!r}")
    return seconds


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file (with DEBUG=true). The
    model_validator enforces production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string selects the SQLite file beside auth/store.py.
    database_url: str = ""

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev secret or raises, so callers never see "".
    jwt_access_token_secret: str = ""
    jwt_access_token_expiration_time: int = 15 * 60
    jwt_refresh_token_secret: str = ""
    jwt_refresh_token_expiration_time: int = 14 * 24 * 3600
    jwt_issuer: str = "passgate"

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    # bcrypt cost factor (log2 rounds). The env name is kept for
    # compatibility with existing deployments.
    bcrypt_salt: int = 10

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("jwt_access_token_expiration_time", "jwt_refresh_token_expiration_time", mode="before")
    @classmethod
    def validate_expiration(cls, v: int | str) -> int:
        return parse_duration(v)

    @field_validator("bcrypt_salt")
    @classmethod
    def validate_bcrypt_salt(cls, v: int) -> int:
        """bcrypt accepts cost factors 4 through 31."""
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_SALT must be between 4 and 31.")
        return v

    @field_validator("jwt_issuer")
    @classmethod
    def validate_issuer(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("JWT_ISSUER must not be empty.")
        return v

    @model_validator(mode="after")
    def validate_token_secrets(self) -> "Settings":
        """Enforce the token secret policy [M6][M7][M8].

        Dev mode (DEBUG=true): auto-generate each missing secret with a
            warning. Issued tokens will not survive a restart.

        Production mode: refuse to start if either secret is missing.

        Both modes: reject secrets shorter than 32 characters and reject an
            access secret equal to the refresh secret.
        """
        for field in ("jwt_access_token_secret", "jwt_refresh_token_secret"):
            env_name = field.upper()
            if not getattr(self, field):
                if self.debug:
                    setattr(self, field, secrets.token_hex(32))
                    logger.warning("Using auto-generated %s. Tokens will not persist across restarts.", env_name)
                else:
                    raise ValueError(
                        f"{env_name} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
            if len(getattr(self, field)) < 32:
                raise ValueError(f"{env_name} must be at least 32 characters.")
        if self.jwt_access_token_secret == self.jwt_refresh_token_secret:
            raise ValueError("JWT_ACCESS_TOKEN_SECRET and JWT_REFRESH_TOKEN_SECRET must differ.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
