"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for CineReview happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): dev mode generates a SECRET_KEY with a
      warning, production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies
  on key entropy -- a short key weakens every issued token.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or catalog/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("cinereview.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'cinereview.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
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
    database_url: str = _DEFAULT_DB_URL
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "testserver", "*.localhost"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 0 disables the exp claim entirely (tokens never expire).
    token_expire_seconds: int = 3600
    # Prefix returned by /signin in front of the JWT ("JWT <token>").
    token_scheme: str = "JWT"
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    # none    -- reviews may reference any movie id, deletes leave orphans
    # enforce -- reviews must reference an existing movie
    # cascade -- enforce, and deleting a movie deletes its reviews
    review_integrity: Literal["none", "enforce", "cascade"] = "none"

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    signin_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

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
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
