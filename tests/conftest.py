"""
tests/conftest.py -- Shared test fixtures for authkeeper.

This module provides:
  - make_settings(): explicit test Settings (no .env, cheap bcrypt, no rate limits)
  - unit fixtures: store, hasher, codec, registration, authentication, verifier
  - api_client: TestClient around create_app(settings) for HTTP integration tests
  - limited_client: a fresh app with rate limiting switched on
  - dead_engine: an engine stand-in that fails like a downed database

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync dependencies in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. Unit fixtures use a file under tmp_path because the services
hand store calls to asyncio.to_thread, and a registration race needs real
separate connections.

bcrypt runs at cost 4 (the library minimum) so the suite stays fast; the
algorithm and code paths are identical to production.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from api.main import create_app
from auth.passwords import PasswordHasher
from auth.service import AuthenticationService, RegistrationService
from auth.store import UserStore
from auth.tokens import TokenCodec
from auth.verifier import TokenVerifier
from core.config import AuthConfig, Settings

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"


def make_settings(db_suffix: str, **overrides) -> Settings:
    """Build Settings for a test without touching the environment or a .env file."""
    values = {
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
        "hash_workers": 2,
        "rate_limit_enabled": False,
        "allowed_hosts": ["testserver"],
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> AuthConfig:
    return AuthConfig(secret_key=TEST_SECRET, bcrypt_rounds=4, hash_workers=2)


@pytest.fixture
def store(tmp_path) -> Generator[UserStore, None, None]:
    s = UserStore(f"sqlite:///{tmp_path / 'users.db'}")
    yield s
    s.close()


@pytest.fixture
def hasher(config: AuthConfig) -> Generator[PasswordHasher, None, None]:
    h = PasswordHasher(rounds=config.bcrypt_rounds, workers=config.hash_workers)
    yield h
    h.close()


@pytest.fixture
def codec(config: AuthConfig) -> TokenCodec:
    return TokenCodec(config)


@pytest.fixture
def registration(store: UserStore, hasher: PasswordHasher) -> RegistrationService:
    return RegistrationService(store, hasher)


@pytest.fixture
def authentication(store: UserStore, hasher: PasswordHasher, codec: TokenCodec) -> AuthenticationService:
    return AuthenticationService(store, hasher, codec)


@pytest.fixture
def verifier(codec: TokenCodec, store: UserStore) -> TokenVerifier:
    return TokenVerifier(codec, store)


# ---------------------------------------------------------------------------
# Module-scoped API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, Settings], None, None]:
    """Yield (client, settings) for HTTP integration tests.

    Each test module gets its own in-memory DB (suffix from the module name),
    so usernames registered in one module never collide with another.
    """
    settings = make_settings(request.module.__name__.rsplit(".", 1)[-1])
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, settings


@pytest.fixture
def limited_client(tmp_path) -> Generator[TestClient, None, None]:
    """TestClient for an app with rate limiting on. Counters start at zero per test."""
    settings = make_settings("limited", database_url=f"sqlite:///{tmp_path / 'limited.db'}", rate_limit_enabled=True)
    with TestClient(create_app(settings)) as client:
        yield client


# ---------------------------------------------------------------------------
# Failure injection
# ---------------------------------------------------------------------------


class DeadEngine:
    """Stand-in engine whose every connection attempt fails like a downed DB."""

    def connect(self):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    def dispose(self) -> None:
        pass


@pytest.fixture
def dead_engine() -> DeadEngine:
    return DeadEngine()
