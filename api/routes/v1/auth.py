"""
api/routes/v1/auth.py -- Signup, login, refresh and identity endpoints.

Routes:
  POST /api/v1/auth/signup   -- create an account; 201 {id}
  POST /api/v1/auth/login    -- password login; returns {id, username, access_token}
  POST /api/v1/auth/refresh  -- exchange the current access token for a new one
  GET  /api/v1/auth/me       -- current user profile (requires bearer token)

Security:
  [H2] POST /login is rate-limited per IP (Settings.login_rate_limit).
  [C1] Login goes through AuthService.validate_credentials(), which equalizes
       timing and returns None for both unknown user and wrong password.
       Both become the same 401 body -- never a 404.
  [M5] Cache-Control: no-store on every response that carries a token.

AuthError subclasses raised by the service (ConflictError, UnauthorizedError,
AuthStateError) are not caught here; api/main.py maps them to HTTP statuses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import (
    LoginRequest,
    MeResponse,
    RefreshRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
)
from auth.dependencies import get_current_user
from auth.models import LoginResult, User
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/signup:   public
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/refresh:  public -- the presented (id, access_token) pair is the credential
# - GET  /api/v1/auth/me:       requires bearer token (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/signup", response_model=SignupResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> SignupResponse:
    """Create a new account. 409 if the username is taken."""
    auth_service: AuthService = request.app.state.auth_service
    user_id = auth_service.signup(
        body.username,
        body.password,
        name=body.name,
        email=body.email,
        url=body.url,
    )
    return SignupResponse(id=user_id)


@router.post("/auth/login", response_model=TokenResponse)
@limiter.limit(login_rate_limit)  # [H2] must be BELOW @router so the route registers the limited wrapper
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; issue a new token pair.

    Returns the same generic error for wrong username and wrong password
    ("bad_credentials") to avoid leaking username existence information.
    """
    auth_service: AuthService = request.app.state.auth_service
    user = auth_service.validate_credentials(body.username, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid username or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    return _token_response(auth_service.login(user.username))


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh(request: Request, body: RefreshRequest) -> JSONResponse:
    """Issue a new access token for the (id, access_token) pair on record."""
    auth_service: AuthService = request.app.state.auth_service
    return _token_response(auth_service.refresh(body.id, body.access_token))


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return the profile of the currently authenticated user."""
    public = current_user.to_public()
    return MeResponse(
        id=public.id,
        username=public.username,
        name=public.name,
        email=public.email,
        url=public.url,
        created_at=public.created_at or "",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _token_response(result: LoginResult) -> JSONResponse:
    resp = JSONResponse(
        status_code=200,
        content=TokenResponse(
            id=result.id,
            username=result.username,
            access_token=result.access_token,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp
