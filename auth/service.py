"""
auth/service.py -- Registration and password authentication.

Both services are async because their expensive step (bcrypt) is awaited on
PasswordHasher's worker pool. Store calls are blocking SQLAlchemy I/O and
go through asyncio.to_thread so a slow database never stalls the loop.

RegistrationService
  Validates the candidate, hashes the password, performs exactly one store
  write and returns the sanitized PublicUser. It never checks for an existing
  username first -- the store's UNIQUE constraint is the only arbiter, so a
  concurrent duplicate surfaces as DuplicateUsername from UserStore.create().

AuthenticationService
  Unknown username and wrong password produce the same AuthFailure, and both
  paths pay for one bcrypt verification (against PasswordHasher.dummy_hash in
  the unknown-user case). The reason is logged for operators, never returned.
"""

from __future__ import annotations

import asyncio
import logging
import re

from auth.errors import AuthFailure, ValidationError
from auth.models import AuthResult, PublicUser, User
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenCodec

logger = logging.getLogger("authkeeper.auth")

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")
_MAX_FIELD_LENGTH = 255


def _required(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, f"{field} is required.")
    return value


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class RegistrationService:
    def __init__(self, store: UserStore, hasher: PasswordHasher) -> None:
        self._store = store
        self._hasher = hasher

    async def register(
        self,
        username: str | None,
        firstname: str | None,
        lastname: str | None,
        email: str | None,
        password: str | None,
    ) -> PublicUser:
        """Create a credential record. Raises ValidationError or DuplicateUsername."""
        username = _required("username", username).strip()
        email = _required("email", email).strip()
        password = _required("password", password)

        if len(username) > _MAX_FIELD_LENGTH:
            raise ValidationError("username", f"username must be at most {_MAX_FIELD_LENGTH} characters.")
        if not _EMAIL_PATTERN.match(email):
            raise ValidationError("email", "email must be a valid address.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError("password", f"password must be at most {MAX_PASSWORD_BYTES} bytes.")

        hashed = await self._hasher.hash(password)
        candidate = User(
            username=username,
            email=email,
            firstname=_optional(firstname),
            lastname=_optional(lastname),
            hashed_password=hashed,
        )
        user = await asyncio.to_thread(self._store.create, candidate)
        logger.info("Registered user id=%s", user.id)
        return PublicUser.from_user(user)


class AuthenticationService:
    def __init__(self, store: UserStore, hasher: PasswordHasher, codec: TokenCodec) -> None:
        self._store = store
        self._hasher = hasher
        self._codec = codec

    async def authenticate(self, username: str, password: str) -> AuthResult:
        """Check credentials and issue a token. Raises AuthFailure on any mismatch."""
        user = await asyncio.to_thread(self._store.get_by_username, username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            await self._hasher.verify(password, self._hasher.dummy_hash)
            logger.info("Login failed: unknown username")
            raise AuthFailure()
        if not await self._hasher.verify(password, user.hashed_password):
            logger.info("Login failed: wrong password for user id=%s", user.id)
            raise AuthFailure()

        token = self._codec.issue(user.id)
        return AuthResult(token=token, expires_in=self._codec.expire_seconds, user=PublicUser.from_user(user))
