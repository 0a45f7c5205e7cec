# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - wallets.py: Wallets, adjustments, deposits/withdrawals and transfers
# - envelopes.py: Envelopes, participants, linked categories and budget
# - categories.py: Categories and subcategories
# - transactions.py: Transactions and income/expense totals
# - user_settings.py: Currency catalog and user configuration
# - subscriptions.py: Plans, subscription lifecycle and invitations
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import wallets
from . import envelopes
from . import categories
from . import transactions
from . import user_settings
from . import subscriptions

__all__ = [
    "health",
    "wallets",
    "envelopes",
    "categories",
    "transactions",
    "user_settings",
    "subscriptions",
]
