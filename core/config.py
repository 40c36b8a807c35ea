"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the portfolio API happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Missing or weak JWT secrets, identical
      access/refresh secrets, and unparsable token lifetimes all abort startup
      here rather than surfacing as per-request errors.

Security notes:
  JWT_SECRET and JWT_REFRESH_SECRET must be distinct. An access token signed
  with one can then never verify as a refresh token and vice versa.

  In production mode (DEBUG not set or false), missing secrets are a hard
  startup failure. In dev mode two independent random secrets are generated
  with a warning; tokens will not survive a restart.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
content/, storage/, or cache/.
"""

import logging
import re
import secrets
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("portfolio.config")

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}


def parse_duration(value: str) -> timedelta:
    """Parse a token lifetime such as "24h", "7d", "15m", "30s" or "3600".

    A bare number is read as seconds. Raises ValueError for anything else,
    including zero-length durations.
    """
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    seconds = int(amount) * _DURATION_UNITS[unit.lower()]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return timedelta(seconds=seconds)


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
    database_url: str = f"sqlite:///{_PROJECT_ROOT / 'portfolio.db'}"
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost:3000"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates dev secrets or raises, so callers never see "".
    jwt_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_expires_in: str = "24h"
    jwt_refresh_expires_in: str = "7d"
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Optional bootstrap admin, created at startup when the email is unused.
    admin_email: str = ""
    admin_password: str = ""
    admin_name: str = "Administrator"

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    api_rate_limit: str = "150 per 15 minutes"
    auth_rate_limit: str = "30 per 15 minutes"
    contact_rate_limit: str = "5 per hour"

    # ------------------------------------------------------------------
    # File uploads
    # ------------------------------------------------------------------

    upload_dir: str = str(_PROJECT_ROOT / "uploads")
    public_base_url: str = "http://localhost:8000"
    max_image_bytes: int = 10 * 1024 * 1024
    max_document_bytes: int = 20 * 1024 * 1024

    # ------------------------------------------------------------------
    # GitHub proxy
    # ------------------------------------------------------------------

    github_token: str = ""
    github_cache_ttl: int = 60 * 60
    github_cache_path: str = str(_PROJECT_ROOT / "cache" / "portfolio_cache.db")

    # ------------------------------------------------------------------
    # Outbound email (contact replies)
    # ------------------------------------------------------------------

    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    smtp_from_email: str = ""
    smtp_from_name: str = "Portfolio"

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.jwt_expires_in)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.jwt_refresh_expires_in)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_settings(self) -> "Settings":
        """Enforce the token-signing policy at startup.

        Dev mode (DEBUG=true): missing secrets are replaced by two independent
            random values with a warning.

        Production mode: a missing secret raises ValueError.

        Both modes: secrets shorter than 32 characters, identical access and
            refresh secrets, and unparsable lifetimes are rejected.
        """
        for name in ("jwt_secret", "jwt_refresh_secret"):
            if getattr(self, name):
                continue
            if not self.debug:
                raise ValueError(
                    f"{name.upper()} is required in production mode. "
                    "Set it in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
            setattr(self, name, secrets.token_hex(32))
            logger.warning("Using auto-generated %s. Tokens will not persist across restarts.", name.upper())

        if len(self.jwt_secret) < 32 or len(self.jwt_refresh_secret) < 32:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be at least 32 characters.")
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different.")

        # Surface a bad lifetime now instead of on the first login.
        parse_duration(self.jwt_expires_in)
        parse_duration(self.jwt_refresh_expires_in)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
