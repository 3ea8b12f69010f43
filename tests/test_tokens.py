"""Unit tests for auth/tokens.py -- JWT issuance and fail-closed decoding.

Covers:
- issued tokens carry sub/iat/exp with a 7-day lifetime
- expired tokens raise TokenExpired even though the signature is valid
- tokens signed with another secret raise TokenInvalid, expired or not
- spliced, garbage and claim-less tokens raise TokenInvalid
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import TokenExpired, TokenInvalid
from auth.tokens import TokenCodec
from core.config import AuthConfig

OTHER_SECRET = "another-secret-key-fedcba9876543210fedcba9876543210"


def test_issue_and_decode(codec: TokenCodec) -> None:
    token = codec.issue(7)
    claims = codec.decode(token)
    assert claims["sub"] == "7"
    assert claims["exp"] - claims["iat"] == 604800


def test_default_lifetime_is_seven_days(config: AuthConfig) -> None:
    assert TokenCodec(config).expire_seconds == 7 * 24 * 3600


def test_expired_token_rejected(codec: TokenCodec) -> None:
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = codec.issue(7, issued_at=issued)
    with pytest.raises(TokenExpired):
        codec.decode(token)


def test_token_just_inside_lifetime_accepted(codec: TokenCodec) -> None:
    issued = datetime.now(timezone.utc) - timedelta(days=6, hours=23)
    assert codec.decode(codec.issue(7, issued_at=issued))["sub"] == "7"


def test_foreign_secret_rejected(codec: TokenCodec) -> None:
    forged = TokenCodec(AuthConfig(secret_key=OTHER_SECRET)).issue(7)
    with pytest.raises(TokenInvalid):
        codec.decode(forged)


def test_foreign_secret_rejected_before_expiry_is_considered(codec: TokenCodec) -> None:
    issued = datetime.now(timezone.utc) - timedelta(days=30)
    forged = TokenCodec(AuthConfig(secret_key=OTHER_SECRET)).issue(7, issued_at=issued)
    with pytest.raises(TokenInvalid):
        codec.decode(forged)


def test_spliced_payload_rejected(codec: TokenCodec) -> None:
    """Header+payload claiming user 2 glued onto user 1's signature."""
    _, _, signature = codec.issue(1).split(".")
    header, payload, _ = codec.issue(2).split(".")
    with pytest.raises(TokenInvalid):
        codec.decode(f"{header}.{payload}.{signature}")


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "JWT something"])
def test_garbage_rejected(codec: TokenCodec, garbage: str) -> None:
    with pytest.raises(TokenInvalid):
        codec.decode(garbage)


def test_missing_subject_rejected(config: AuthConfig, codec: TokenCodec) -> None:
    now = datetime.now(timezone.utc)
    token = jwt.encode({"iat": now, "exp": now + timedelta(hours=1)}, config.secret_key, algorithm="HS256")
    with pytest.raises(TokenInvalid):
        codec.decode(token)


def test_missing_expiry_rejected(config: AuthConfig, codec: TokenCodec) -> None:
    token = jwt.encode({"sub": "7", "iat": datetime.now(timezone.utc)}, config.secret_key, algorithm="HS256")
    with pytest.raises(TokenInvalid):
        codec.decode(token)


def test_stripped_signature_rejected(codec: TokenCodec) -> None:
    header, payload, _ = codec.issue(7).split(".")
    with pytest.raises(TokenInvalid):
        codec.decode(f"{header}.{payload}.")
