"""
auth/verifier.py -- Resolve a bearer token back to a live user record.

TokenVerifier is a plain value built once at startup with its collaborators
injected (codec for signature/expiry, store for the identity lookup). It
keeps no state between calls, so one instance serves every request without
locking.

Fail-closed order:
  1. signature    -> TokenInvalid
  2. expiry       -> TokenExpired
  3. sub claim    -> TokenInvalid if not an integer id
  4. store lookup -> IdentityNotFound if the record is gone

A StoreUnavailable from step 4 propagates unchanged: an outage is not the
same thing as a bad token and is reported as such.
"""

from __future__ import annotations

from auth.errors import IdentityNotFound, TokenInvalid
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenCodec

# Schemes accepted in the Authorization header. "JWT" is the wire contract
# clients were built against; "Bearer" is the RFC 6750 spelling.
AUTH_SCHEMES = ("jwt", "bearer")


def parse_authorization(header: str | None) -> str | None:
    """Extract the token from an "Authorization: <scheme> <token>" header value.

    Scheme matching is case-insensitive. Returns None when the header is
    absent, uses another scheme, or carries no token.
    """
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() not in AUTH_SCHEMES or not token:
        return None
    return token


class TokenVerifier:
    def __init__(self, codec: TokenCodec, store: UserStore) -> None:
        self._codec = codec
        self._store = store

    def verify(self, token: str) -> User:
        """Return the user the token was issued to, or raise an Unauthorized subclass."""
        claims = self._codec.decode(token)
        try:
            user_id = int(claims["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalid() from exc
        user = self._store.get_by_id(user_id)
        if user is None:
            raise IdentityNotFound(context={"user_id": user_id})
        return user
