"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer-token auth.

The access token is read from the "Authorization: Bearer <token>" header and
verified against the access secret. The user id in the token is resolved to
a current record in the store.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because this module is part of the FastAPI dependency
injection system. It does not import from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import User
from auth.service import AuthService


def try_get_current_user(request: Request) -> User | None:
    """Authenticate the request from its bearer token. Never raises."""
    auth_service: AuthService = request.app.state.auth_service

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    payload = auth_service.issuer.decode_access_token(auth_header[7:])
    if payload is None:
        return None
    return request.app.state.user_store.get_by_id(payload["id"])


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
