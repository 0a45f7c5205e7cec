# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - money.py: Decimal helpers for balances and budgets
# - utils.py: Shared utilities (UUID normalization, timestamps, codes)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.money import to_amount, to_decimal
from lib.utils import normalize_uuid, utc_now_iso

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Money
    "to_amount",
    "to_decimal",
    # Utils
    "normalize_uuid",
    "utc_now_iso",
]
