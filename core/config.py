"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for AssetGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
or better, accept a Settings instance as a constructor argument.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). A few fields also accept the variable
      names used by earlier deployments (PDF_PASSWORD, SERVE_PNGS_FOR_IOS).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment.

Security notes:
  [M6] JWT_SECRET shorter than 32 chars is rejected outright.
  [M7] Outside DEBUG, a missing JWT_SECRET is a hard startup failure.
  [M8] A missing ACCESS_PASSWORD is always a hard startup failure -- there is
       no sensible default for the one credential the service accepts.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, storage/, or access/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

import limits
from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models import RatePolicy

logger = logging.getLogger("assetgate.config")


def parse_rate_policy(expression: str) -> RatePolicy:
    """Turn a limits-style expression ("100/15minutes") into a RatePolicy.

    Raises ValueError when the expression cannot be parsed.
    """
    item = limits.parse(expression)
    return RatePolicy(max_requests=item.amount, window_seconds=item.get_expiry())


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field has a default except the two secrets, whose empty-string
    sentinel is resolved (or rejected) by the model_validator below.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    host: str = "0.0.0.0"  # nosec B104 -- container deployment binds all interfaces
    port: int = 3000

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    access_password: str = Field(
        default="",
        validation_alias=AliasChoices("access_password", "ACCESS_PASSWORD", "PDF_PASSWORD"),
    )
    jwt_secret: str = ""
    token_ttl_seconds: int = 3600
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Rate limiting -- limits notation, e.g. "100/15minutes"
    # ------------------------------------------------------------------

    general_rate_limit: str = "100/15minutes"
    asset_rate_limit: str = "100/5minutes"

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    primary_dir: Path = Path("pdfs")
    derivative_dir: Path = Path("pngs")
    primary_ext: str = "pdf"
    derivative_ext: str = "png"
    derivative_cache_seconds: int = 3600
    serve_derivatives: bool = Field(
        default=False,
        validation_alias=AliasChoices("serve_derivatives", "SERVE_DERIVATIVES", "SERVE_PNGS_FOR_IOS"),
    )

    # ------------------------------------------------------------------
    # Browser-facing policy (enforced by the HTTP layer, not the kernel)
    # ------------------------------------------------------------------

    # Comma separated, as in the ALLOWED_ORIGINS env var.
    allowed_origins: str = "https://URL.info"
    # Space separated CSP source list.
    frame_ancestors: str = "'self'"

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def general_policy(self) -> RatePolicy:
        return parse_rate_policy(self.general_rate_limit)

    @property
    def asset_policy(self) -> RatePolicy:
        return parse_rate_policy(self.asset_rate_limit)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce the startup policy for both secrets [M6] [M7] [M8].

        Dev mode (DEBUG=true): a missing JWT_SECRET is replaced by a random
            key with a warning. Tokens will not survive a restart.

        Production mode: refuse to start without JWT_SECRET.

        Both modes: refuse to start without ACCESS_PASSWORD, reject signing
            keys shorter than 32 characters, and reject rate limit strings
            the limits parser does not understand.
        """
        if not self.access_password:
            raise ValueError(
                "ACCESS_PASSWORD is required. " "Set ACCESS_PASSWORD (or PDF_PASSWORD) in your environment or .env file."
            )
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated JWT_SECRET. " "Tokens will not survive a restart.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        for name in ("general_rate_limit", "asset_rate_limit"):
            try:
                parse_rate_policy(getattr(self, name))
            except ValueError as e:
                raise ValueError(f"{name.upper()} is not a valid rate limit expression: {e}") from e
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: construct Settings(...) directly and hand it to create_app(),
    or call get_settings.cache_clear() after changing the environment.
    """
    return Settings()
