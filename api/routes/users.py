"""
api/routes/users.py -- Registration, login and token-protected user endpoints.

Routes:
  POST /users/register      -- create a credential record (public)
  POST /users/authenticate  -- password login; returns "JWT <token>" (public)
  POST /users/validate      -- confirm a token is still good (requires auth)
  GET  /users/profile       -- sanitized profile of the caller (requires auth)

Handlers stay thin: they pull the services off app.state, call them, and map
domain results onto api.models. Failures are AuthError subclasses raised by
the services or by get_current_user(); api/main.py turns those into the
error envelope, so no handler builds an error response itself.

Security:
  POST /authenticate and /register are rate-limited per client IP. The limit
  wrapper is applied in build_router() with the app's own Limiter, so the
  router registers the wrapped endpoint and slowapi actually runs the check.
  AuthenticationService provides timing equalization -- use it, never inline
  get_by_username() + verify().
  Cache-Control: no-store on login responses so tokens are not cached.
"""


from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter

from api.limiter import AUTHENTICATE_LIMIT, REGISTER_LIMIT
from api.models import (
    AuthenticateRequest,
    AuthenticateResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    UserView,
    ValidateResponse,
)
from auth.dependencies import get_current_user
from auth.models import PublicUser, User
from auth.service import AuthenticationService, RegistrationService

# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


async def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Register a new user. 409 if the username is taken, 422 on a bad field."""
    registration: RegistrationService = request.app.state.registration
    await registration.register(
        username=body.username,
        firstname=body.firstname,
        lastname=body.lastname,
        email=body.email,
        password=body.password,
    )
    return JSONResponse(status_code=201, content=RegisterResponse().model_dump())


async def authenticate(request: Request, body: AuthenticateRequest) -> JSONResponse:
    """Exchange username and password for a signed token.

    Returns the same 401 body for an unknown username and a wrong password.
    """
    authentication: AuthenticationService = request.app.state.authentication
    result = await authentication.authenticate(body.username, body.password)
    resp = JSONResponse(
        status_code=200,
        content=AuthenticateResponse(
            token=f"JWT {result.token}",
            expires_in=result.expires_in,
            user=UserView.from_public(result.user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


async def validate(current_user: User = Depends(get_current_user)) -> ValidateResponse:
    return ValidateResponse(user_id=current_user.id)


async def profile(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    """Return the caller's profile, re-read from the store by the verifier."""
    return ProfileResponse(user=UserView.from_public(PublicUser.from_user(current_user)))


# ---------------------------------------------------------------------------
# Router assembly
# ---------------------------------------------------------------------------


def build_router(limiter: Limiter) -> APIRouter:
    """Return the /users router with rate limits bound to the given Limiter."""
    router = APIRouter()
    router.add_api_route(
        "/users/register",
        limiter.limit(REGISTER_LIMIT)(register),
        methods=["POST"],
        response_model=RegisterResponse,
        status_code=201,
    )
    router.add_api_route(
        "/users/authenticate",
        limiter.limit(AUTHENTICATE_LIMIT)(authenticate),
        methods=["POST"],
        response_model=AuthenticateResponse,
    )
    router.add_api_route("/users/validate", validate, methods=["POST"], response_model=ValidateResponse)
    router.add_api_route("/users/profile", profile, methods=["GET"], response_model=ProfileResponse)
    return router
