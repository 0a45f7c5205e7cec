# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .config_service import ConfigService
from .subscription_service import SubscriptionService
from .wallet_service import WalletService
from .envelope_service import EnvelopeService
from .budget_service import BudgetService
from .envelope_category_service import EnvelopeCategoryService
from .transaction_service import TransactionService
from .category_service import CategoryService

__all__ = [
    "ConfigService",
    "SubscriptionService",
    "WalletService",
    "EnvelopeService",
    "BudgetService",
    "EnvelopeCategoryService",
    "TransactionService",
    "CategoryService",
]
