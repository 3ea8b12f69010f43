"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for authkeeper happen here. No module should
call os.getenv() or os.environ.get() directly.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call. Only the entry point (asgi.py / create_app) calls it. Services
      never read settings themselves -- they are handed an AuthConfig value.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): DEBUG-conditional SECRET_KEY logic. Dev mode
      generates a key with a warning, production mode refuses to start without
      one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies on
  key entropy -- a short key makes HS256 tokens forgeable by brute force.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authkeeper.config")

_SEVEN_DAYS = 7 * 24 * 60 * 60  # 604800


@dataclass(frozen=True)
class AuthConfig:
    """Immutable slice of Settings handed to the auth services at startup.

    Frozen so that nothing downstream can rotate the secret or stretch token
    lifetime mid-process.
    """

    secret_key: str
    token_expire_seconds: int = _SEVEN_DAYS
    algorithm: str = "HS256"
    bcrypt_rounds: int = 12
    hash_workers: int = 4


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = "sqlite:///authkeeper.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=_SEVEN_DAYS, gt=0)
    # bcrypt cost factor. 4 is the library minimum and is only sensible in tests.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    # Size of the thread pool that runs bcrypt off the event loop.
    hash_workers: int = Field(default=4, ge=1)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:4200", "http://localhost:3000"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    # Per-route limits live on the routes themselves (api/routes/users.py).
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing. A random key in production would silently
            invalidate every issued token on each restart.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    def auth_config(self) -> AuthConfig:
        """Return the immutable configuration value consumed by auth/ services."""
        return AuthConfig(
            secret_key=self.secret_key,
            token_expire_seconds=self.token_expire_seconds,
            bcrypt_rounds=self.bcrypt_rounds,
            hash_workers=self.hash_workers,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or build Settings(...) directly
    and pass it to create_app().
    """
    return Settings()
