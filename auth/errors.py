"""
auth/errors.py -- Exception taxonomy for the authentication core.

Every failure the services can produce is an AuthError subclass carrying a
stable machine-readable code, the HTTP status the API layer should use, a
client-safe message and optional context. The API layer renders them with a
single exception handler; nothing in auth/ imports FastAPI to do so.

Unauthorized subclasses (TokenInvalid, TokenExpired, IdentityNotFound) share
one code and one message on purpose: the class name is for logs only and must
never reach a response body.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class AuthError(Exception):
    code: str = "auth_error"
    status_code: int = 400
    message: str = "Request failed."

    def __init__(self, message: str | None = None, *, context: Mapping[str, Any] | None = None) -> None:
        if message is not None:
            self.message = message
        self.context = dict(context) if context else None
        super().__init__(self.message)


class ValidationError(AuthError):
    """A required registration field is missing, blank or malformed."""

    code = "validation_error"
    status_code = 422

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message, context={"field": field})


class DuplicateUsername(AuthError):
    code = "duplicate_username"
    status_code = 409
    message = "Username is already taken."


class AuthFailure(AuthError):
    """Bad credentials. Raised identically for unknown user and wrong password."""

    code = "bad_credentials"
    status_code = 401
    message = "Invalid username or password."


class Unauthorized(AuthError):
    code = "unauthorized"
    status_code = 401
    message = "Authentication required."


class TokenInvalid(Unauthorized):
    pass


class TokenExpired(Unauthorized):
    pass


class IdentityNotFound(Unauthorized):
    pass


class StoreUnavailable(AuthError):
    """The credential store could not be reached or failed mid-operation."""

    code = "store_unavailable"
    status_code = 503
    message = "Service temporarily unavailable."
