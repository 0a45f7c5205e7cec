# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - wallet.py: Wallet CRUD, adjustments, deposits and transfers
# - envelope.py: Envelopes, participants and budget assignments
# - transaction.py: Transactions and non-blocking warnings
# - category.py: Categories and subcategories
# - user_config.py: Per-user onboarding configuration
# - subscription.py: Plans, subscriptions and invitations
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Wallet Models
# -----------------------------------------------------------------------------
from .wallet import (
    UNDECLARED_WALLET,
    BalanceAdjustment,
    DepositWithdrawRequest,
    MovementType,
    WalletCreate,
    WalletTransferRequest,
    WalletType,
    WalletUpdate,
)

# -----------------------------------------------------------------------------
# Envelope Models
# -----------------------------------------------------------------------------
from .envelope import (
    AssignmentType,
    BudgetAssignmentCreate,
    BudgetReturnRequest,
    EnvelopeCategoriesAdd,
    EnvelopeCreate,
    EnvelopeTransferRequest,
    EnvelopeType,
    EnvelopeUpdate,
    ParticipantAdd,
    ParticipantRole,
)

# -----------------------------------------------------------------------------
# Transaction Models
# -----------------------------------------------------------------------------
from .transaction import (
    BALANCE_EFFECT,
    OperationWarning,
    TransactionCreate,
    TransactionFilters,
    TransactionType,
    TransactionUpdate,
    WarningType,
)

# -----------------------------------------------------------------------------
# Category Models
# -----------------------------------------------------------------------------
from .category import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)

# -----------------------------------------------------------------------------
# User Config Models
# -----------------------------------------------------------------------------
from .user_config import (
    PeriodType,
    UserConfigCreate,
    UserConfigUpdate,
)

# -----------------------------------------------------------------------------
# Subscription Models
# -----------------------------------------------------------------------------
from .subscription import (
    ACTIVE_STATUSES,
    BillingPeriod,
    HistoryEvent,
    InvitationAccept,
    InvitationStatus,
    PlanSlug,
    SubscriptionStatus,
    TrialRequest,
    UpgradeRequest,
)

# -----------------------------------------------------------------------------
# __all__ - Explicit public API
# -----------------------------------------------------------------------------
__all__ = [
    # Wallet
    "UNDECLARED_WALLET",
    "BalanceAdjustment",
    "DepositWithdrawRequest",
    "MovementType",
    "WalletCreate",
    "WalletTransferRequest",
    "WalletType",
    "WalletUpdate",
    # Envelope
    "AssignmentType",
    "BudgetAssignmentCreate",
    "BudgetReturnRequest",
    "EnvelopeCategoriesAdd",
    "EnvelopeCreate",
    "EnvelopeTransferRequest",
    "EnvelopeType",
    "EnvelopeUpdate",
    "ParticipantAdd",
    "ParticipantRole",
    # Transaction
    "BALANCE_EFFECT",
    "OperationWarning",
    "TransactionCreate",
    "TransactionFilters",
    "TransactionType",
    "TransactionUpdate",
    "WarningType",
    # Category
    "CategoryCreate",
    "CategoryUpdate",
    "SubcategoryCreate",
    "SubcategoryUpdate",
    # User config
    "PeriodType",
    "UserConfigCreate",
    "UserConfigUpdate",
    # Subscription
    "ACTIVE_STATUSES",
    "BillingPeriod",
    "HistoryEvent",
    "InvitationAccept",
    "InvitationStatus",
    "PlanSlug",
    "SubscriptionStatus",
    "TrialRequest",
    "UpgradeRequest",
]
