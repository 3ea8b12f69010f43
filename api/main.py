"""
api/main.py -- FastAPI application factory for authkeeper.

Run with:  uvicorn asgi:app --reload

create_app(settings) builds the app around one explicit Settings value. The
lifespan turns that into the object graph the routes use:

    UserStore ----------------------+--> RegistrationService
    PasswordHasher (bcrypt pool) ---+--> AuthenticationService <-- TokenCodec
    TokenCodec + UserStore ------------> TokenVerifier

and parks each piece on app.state. Nothing below this module reads settings
or environment variables on its own.

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- hands limited routes to the app's own Limiter
  4. log_requests          -- one log line per request with latency

Errors: every AuthError raised by a service or by get_current_user() goes
through auth_error_handler, so handlers never build error bodies themselves.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from api.limiter import build_limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.users import build_router
from auth.errors import AuthError, StoreUnavailable, Unauthorized
from auth.passwords import PasswordHasher
from auth.service import AuthenticationService, RegistrationService
from auth.store import UserStore
from auth.tokens import TokenCodec
from auth.verifier import TokenVerifier
from core.config import Settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authkeeper.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def _make_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build the auth object graph on startup and tear it down on shutdown.

        The hasher computes its timing-equalization dummy hash in __init__,
        so the first failed login is not measurably faster than later ones.
        """
        logger.info("authkeeper API starting up")
        config = settings.auth_config()
        store = UserStore(settings.database_url)
        hasher = PasswordHasher(rounds=config.bcrypt_rounds, workers=config.hash_workers)
        codec = TokenCodec(config)

        app.state.user_store = store
        app.state.hasher = hasher
        app.state.registration = RegistrationService(store, hasher)
        app.state.authentication = AuthenticationService(store, hasher, codec)
        app.state.verifier = TokenVerifier(codec, store)
        logger.info(
            "Auth initialized (users=%d, token_ttl=%ds, hash_workers=%d)",
            store.count(),
            config.token_expire_seconds,
            config.hash_workers,
        )

        yield

        hasher.close()
        store.close()
        logger.info("authkeeper API shutdown complete")

    return lifespan


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(
        title="authkeeper API",
        description="User registration, password login and JWT verification.",
        version=VERSION,
        lifespan=_make_lifespan(settings),
    )

    # Each registration wraps everything registered before it, so the list
    # below reads innermost-first: logging, SlowAPI, CORS, TrustedHost.
    app.middleware("http")(log_requests)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # SlowAPIMiddleware looks for app.state.limiter by convention; the router
    # gets the same instance so both sides agree on counters and on/off.
    limiter = build_limiter(enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter

    app.include_router(build_router(limiter), tags=["Users"])
    app.add_api_route("/health", health, methods=["GET"], response_model=HealthResponse, tags=["Health"])

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    return app


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit and no auth -- load balancers must always reach it.
# ---------------------------------------------------------------------------


async def health(request: Request) -> HealthResponse:
    """Return liveness, version and whether the credential store answers."""
    db_ok = await asyncio.to_thread(request.app.state.user_store.ping)
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render any auth/ failure.

    Unauthorized subclasses are collapsed onto the base class so a client
    cannot tell an expired token from a forged one or a deleted user. Only
    ValidationError exposes its context (the field name); store outages are
    logged with traceback and reported without detail.
    """
    if isinstance(exc, Unauthorized):
        exc = Unauthorized()
    elif isinstance(exc, StoreUnavailable):
        logger.error("Credential store unavailable on %s %s", request.method, request.url.path, exc_info=exc)

    detail = exc.context if exc.code == "validation_error" else None
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.build(exc.code, exc.message, detail).model_dump(),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "JWT"
        response.headers["Cache-Control"] = "no-store"
    return response


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After is the length of the exceeded window in seconds, so a client
    that waits that long is guaranteed a fresh allowance.
    """
    retry_after = int(exc.limit.limit.get_expiry())
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse.build("rate_limited", "Too many requests.", str(exc.detail)).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when the request body fails schema validation.

    Only the location and message of each error are echoed back -- never the
    submitted input, which may be a password.
    """
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    return JSONResponse(
        status_code=422,
        content=ErrorResponse.build("validation_error", "Request validation failed.", errors).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.build(f"http_{exc.status_code}", str(exc.detail)).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse.build("internal_error", "An unexpected error occurred.").model_dump(),
    )
