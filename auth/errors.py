"""
auth/errors.py -- Exceptions raised by the auth core.

Credential validation failure is NOT represented here: validate_credentials()
returns None so the calling layer has exactly one failure shape to map.

Layer rule: no imports from api/ or core/. The HTTP status mapping lives in
api/main.py.
"""


class AuthError(Exception):
    """Base class for auth core failures. `code` is a stable machine string."""

    code = "auth_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ConflictError(AuthError):
    """A user with that username already exists."""

    code = "conflict"


class UnauthorizedError(AuthError):
    """Authentication required."""

    code = "unauthorized"


class AuthStateError(AuthError):
    """The user record changed between validation and token issue."""

    code = "internal_error"
