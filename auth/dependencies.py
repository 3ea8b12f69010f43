"""
auth/dependencies.py -- FastAPI Depends() helper for token authentication.

get_current_user() pulls the token out of the Authorization header
("JWT <token>" or "Bearer <token>"), runs it through the TokenVerifier held
on app.state, and returns the resolved User. The user is also stashed on
request.state.user for middleware and handlers that want it without
re-declaring the dependency.

Every failure -- no header, bad signature, expired, deleted user -- is raised
as an Unauthorized subclass; api/main.py renders all of them as the same 401
body. The specific reason is logged here and nowhere else.

Layer rule: may import from fastapi (for Request) because this module is part
of the FastAPI dependency injection system; no imports from api/.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.errors import Unauthorized
from auth.models import User
from auth.verifier import TokenVerifier, parse_authorization

logger = logging.getLogger("authkeeper.auth")


def get_current_user(request: Request) -> User:
    """Require a valid token. Raises Unauthorized (HTTP 401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    token = parse_authorization(request.headers.get("Authorization"))
    if token is None:
        raise Unauthorized()

    verifier: TokenVerifier = request.app.state.verifier
    try:
        user = verifier.verify(token)
    except Unauthorized as exc:
        logger.info("Token rejected on %s: %s", request.url.path, type(exc).__name__)
        raise

    request.state.user = user
    return user
