# =============================================================================
# core/models/user_config.py - User Configuration Schemas
# =============================================================================
# Per-user settings created during onboarding: main currency, enabled
# currencies and how budget periods are cut.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class PeriodType(str, Enum):
    """How the user's budget periods are cut."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class UserConfigCreate(BaseModel):
    """
    Schema for the onboarding step.

    Example:
        {
            "main_currency_id": "CLP",
            "enabled_currencies": ["CLP", "USD"],
            "timezone": "America/Santiago"
        }
    """
    main_currency_id: str = Field(..., min_length=1)

    # Defaults to [main_currency_id] when empty
    enabled_currencies: list[str] = Field(default_factory=list)

    timezone: str = Field(default="UTC", max_length=64)
    locale: str = Field(default="en", max_length=10)

    # 0 = Sunday, 1 = Monday
    first_day_of_week: int = Field(default=1, ge=0, le=6)

    period_type: PeriodType = Field(default=PeriodType.MONTHLY)

    # Day of month (or week) the period starts on
    period_start_day: int = Field(default=1, ge=1, le=31)


class UserConfigUpdate(BaseModel):
    """Partial update of the user's configuration."""
    main_currency_id: str | None = Field(default=None, min_length=1)
    enabled_currencies: list[str] | None = None
    timezone: str | None = Field(default=None, max_length=64)
    locale: str | None = Field(default=None, max_length=10)
    first_day_of_week: int | None = Field(default=None, ge=0, le=6)
    period_type: PeriodType | None = None
    period_start_day: int | None = Field(default=None, ge=1, le=31)
