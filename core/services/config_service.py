# =============================================================================
# core/services/config_service.py - Currencies & User Configuration
# =============================================================================
# Handles the currency catalog and the per-user configuration created
# during onboarding. Also resolves which currency a new wallet or envelope
# should use when the client doesn't send one.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid
from app.exceptions import (
    InvalidInputError,
    OnboardingRequiredError,
)

logger = logging.getLogger(__name__)


class ConfigService:
    """
    Service for currencies and user configuration.
    """

    # -------------------------------------------------------------------------
    # Currencies
    # -------------------------------------------------------------------------

    @staticmethod
    def list_currencies() -> list[dict[str, Any]]:
        """Active currencies in display order."""
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("currencies")
                .select("*")
                .eq("active", True)
                .order("sort_order")
                .execute()
            )
            return response.data or []

        except Exception as e:
            logger.error(f"Failed to list currencies: {e}")
            raise

    @staticmethod
    def get_currency(currency_id: str) -> dict[str, Any] | None:
        return SupabaseClient.fetch_row("currencies", currency_id)

    @staticmethod
    def require_currency(currency_id: str) -> dict[str, Any]:
        """
        Get a currency or fail with a validation error.

        Unknown or inactive currencies are client mistakes (400), not
        missing resources.
        """
        currency = ConfigService.get_currency(currency_id)
        if not currency or currency.get("active") is False:
            raise InvalidInputError(
                f"Invalid currency: {currency_id}",
                code="INVALID_CURRENCY",
                suggestion="Use one of the codes returned by GET /api/currencies",
                details={"currency_id": currency_id},
            )
        return currency

    @staticmethod
    def resolve_currency(
        user_id: UUID | str,
        currency_id: str | None = None,
        fallback: str | None = None,
    ) -> str:
        """
        Decide the currency for a new wallet or envelope.

        Order: explicit currency -> user's main currency -> `fallback`
        -> first active currency.

        Returns:
            Currency code, validated against the catalog

        Raises:
            InvalidInputError: If the currency is unknown or none is available
        """
        if currency_id:
            return ConfigService.require_currency(currency_id)["id"]

        config = SupabaseClient.fetch_row("user_config", user_id, id_column="user_id")
        if config and config.get("main_currency_id"):
            return config["main_currency_id"]

        if fallback:
            return ConfigService.require_currency(fallback)["id"]

        currencies = ConfigService.list_currencies()
        if not currencies:
            raise InvalidInputError(
                "No active currency available",
                code="NO_CURRENCY",
                suggestion="Send currency_id explicitly or configure a main currency",
            )
        return currencies[0]["id"]

    # -------------------------------------------------------------------------
    # User Config
    # -------------------------------------------------------------------------

    @staticmethod
    def get_user_config(user_id: UUID | str) -> dict[str, Any]:
        """
        Get the user's configuration.

        Raises:
            OnboardingRequiredError: If the user hasn't onboarded yet
        """
        config = SupabaseClient.fetch_row("user_config", user_id, id_column="user_id")
        if not config:
            raise OnboardingRequiredError()
        return config

    @staticmethod
    def create_user_config(user_id: UUID | str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Create the user's configuration (onboarding).

        Args:
            user_id: The user completing onboarding
            data: Validated UserConfigCreate fields

        Raises:
            InvalidInputError: If the config already exists or a currency is unknown
        """
        user_id_str = normalize_uuid(user_id)

        if SupabaseClient.fetch_row("user_config", user_id_str, id_column="user_id"):
            raise InvalidInputError(
                "User configuration already exists",
                code="CONFIG_EXISTS",
                suggestion="Use PUT /api/user/config to change it",
            )

        main_currency = ConfigService.require_currency(data["main_currency_id"])["id"]
        enabled = ConfigService._validate_enabled(data.get("enabled_currencies") or [], main_currency)

        row = {
            **data,
            "user_id": user_id_str,
            "main_currency_id": main_currency,
            "enabled_currencies": enabled,
        }
        config = SupabaseClient.insert_row("user_config", row)
        logger.info(f"Created user config for user: {user_id_str} (currency {main_currency})")
        return config

    @staticmethod
    def update_user_config(user_id: UUID | str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Partially update the user's configuration.

        Raises:
            OnboardingRequiredError: If there's nothing to update yet
        """
        config = ConfigService.get_user_config(user_id)
        update_data = {key: value for key, value in fields.items() if value is not None}

        main_currency = config["main_currency_id"]
        if "main_currency_id" in update_data:
            main_currency = ConfigService.require_currency(update_data["main_currency_id"])["id"]

        if "enabled_currencies" in update_data or "main_currency_id" in update_data:
            enabled = update_data.get("enabled_currencies", config.get("enabled_currencies") or [])
            update_data["enabled_currencies"] = ConfigService._validate_enabled(enabled, main_currency)

        if not update_data:
            return config

        updated = SupabaseClient.update_row("user_config", user_id, update_data, id_column="user_id")
        logger.info(f"Updated user config for user: {user_id}")
        return updated or config

    @staticmethod
    def _validate_enabled(enabled: list[str], main_currency: str) -> list[str]:
        # Main currency is always enabled and listed first
        result = [main_currency]
        for currency_id in enabled:
            if currency_id in result:
                continue
            result.append(ConfigService.require_currency(currency_id)["id"])
        return result
