"""
auth/tokens.py -- JWT issuance and decoding.

Security design decisions:
  python-jose with HS256. A token carries only sub (the user id, as a string
  per RFC 7519), iat and exp. Username, names and email are deliberately left
  out: the verifier re-reads the record from the store on every request, so
  stale or forged profile data in a token can never be trusted.

  decode() checks the signature first and the expiry second (jose's order),
  then insists that sub, iat and exp are all present. Failures are raised as
  TokenInvalid / TokenExpired so the caller can log which one happened while
  still answering every client with the same 401.

  The secret comes from an AuthConfig handed in at construction. This module
  never reads settings on its own.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpired, TokenInvalid
from core.config import AuthConfig

_REQUIRED_CLAIMS = {"require_sub": True, "require_iat": True, "require_exp": True}


class TokenCodec:
    def __init__(self, config: AuthConfig) -> None:
        self._secret = config.secret_key
        self._algorithm = config.algorithm
        self.expire_seconds = config.token_expire_seconds

    def issue(self, user_id: int, issued_at: datetime | None = None) -> str:
        """Encode a signed JWT for user_id, valid for expire_seconds from issued_at.

        issued_at defaults to now; tests pass an earlier instant to mint
        tokens that are already expired.
        """
        iat = issued_at or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": iat,
            "exp": iat + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict:
        """Verify signature and expiry and return the claims.

        Raises TokenExpired for a correctly signed token past its exp, and
        TokenInvalid for anything else (bad signature, wrong algorithm,
        malformed token, missing claims).
        """
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm], options=_REQUIRED_CLAIMS)
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTError as exc:
            raise TokenInvalid() from exc
