# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Environment-driven configuration for the API and the Celery worker, read
# once from the process environment and the project's .env file.
#
# Usage:
#   from app.config import settings
#   settings.DEFAULT_CURRENCY
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings for Supabase, Redis, money defaults and subscriptions."""

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    # Required; startup fails without them

    SUPABASE_URL: str = Field(..., description="Project URL, e.g. https://xxx.supabase.co")
    SUPABASE_ANON_KEY: str = Field(..., description="anon/public API key")
    SUPABASE_SERVICE_KEY: str = Field(..., description="service_role key used by the API (bypasses RLS)")
    SUPABASE_JWT_SECRET: str = Field(..., description="Secret that signs HS256 access tokens")

    # -------------------------------------------------------------------------
    # Celery broker
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(default="redis://localhost:6379/0")

    # -------------------------------------------------------------------------
    # Money
    # -------------------------------------------------------------------------

    DEFAULT_CURRENCY: str = Field(
        default="USD",
        min_length=3,
        max_length=10,
        description="Envelope currency for users without a main currency"
    )

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    TRIAL_DAYS: int = Field(
        default=7,
        ge=0,
        le=90,
        description="Trial length when the plan doesn't define one"
    )

    GRACE_PERIOD_DAYS: int = Field(
        default=3,
        ge=0,
        le=30,
        description="Days a paid subscription stays usable after expires_at"
    )

    INVITATION_EXPIRY_DAYS: int = Field(default=30, ge=1, le=365)

    PAYMENT_MODE: Literal["sandbox", "production"] = Field(
        default="sandbox",
        description="sandbox applies upgrades immediately; production needs a payment provider"
    )

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=8000, ge=1, le=65535)

    # Comma-separated
    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_sandbox_payments(self) -> bool:
        """Upgrades are applied without a payment provider."""
        return self.PAYMENT_MODE == "sandbox"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Parse and validate the environment once per process."""
    return Settings()


settings = get_settings()
