"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Freightgate happen here. No module should
call os.getenv() or os.environ.get() directly -- build a Settings instance
(or call get_settings() from the process entry point) and pass it down.

Design patterns used:
  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret_key -> JWT_SECRET_KEY). Type coercion and validation
      are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. A missing or short JWT_SECRET_KEY is a startup failure,
      never a first-request failure.

  Explicit injection: create_app() receives a Settings instance. get_settings()
      is only called by asgi.py, so tests construct Settings(...) directly.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or pricing/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("freightgate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'freightgate.db'}"

# HS256 keys shorter than this have too little entropy to sign tokens.
MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    jwt_secret_key has no usable default: Settings() raises ValueError when
    JWT_SECRET_KEY is absent, which stops the process before it serves a
    single request.
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
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator rejects it.
    jwt_secret_key: str = ""
    token_expire_seconds: int = Field(default=2 * 60 * 60, gt=0)
    # bcrypt accepts 4..31. 10 matches the cost the service has always used.
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Refuse to start without a usable signing secret."""
        if not self.jwt_secret_key:
            raise ValueError(
                "JWT_SECRET_KEY is required. Set JWT_SECRET_KEY in your environment or .env file."
            )
        if len(self.jwt_secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters.")
        if self.default_page_size > self.max_page_size:
            raise ValueError("DEFAULT_PAGE_SIZE must not exceed MAX_PAGE_SIZE.")
        logger.debug(
            "Settings loaded (token lifetime %ss, bcrypt cost %s)", self.token_expire_seconds, self.bcrypt_rounds
        )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process Settings, built once at first call.

    Only the ASGI entry point should call this. In tests, construct
    Settings(jwt_secret_key=...) directly and hand it to create_app().
    """
    return Settings()
