# =============================================================================
# core/models/transaction.py - Transaction Schemas
# =============================================================================
# These models define the API contract for transactions and the
# non-blocking warnings returned alongside money-moving writes.
# =============================================================================

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    """
    Kinds of transaction and their effect on the wallet balance.

    - income, deposit: add to the balance
    - expense, transfer, card_payment: subtract from the balance
    - adjustment: recorded only; the balance was already corrected
    """
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"
    DEPOSIT = "deposit"
    CARD_PAYMENT = "card_payment"
    ADJUSTMENT = "adjustment"


# Sign applied to the amount when a transaction hits its wallet
BALANCE_EFFECT: dict[TransactionType, int] = {
    TransactionType.INCOME: 1,
    TransactionType.DEPOSIT: 1,
    TransactionType.EXPENSE: -1,
    TransactionType.TRANSFER: -1,
    TransactionType.CARD_PAYMENT: -1,
    TransactionType.ADJUSTMENT: 0,
}


class WarningType(str, Enum):
    OVERSPEND_ENVELOPE = "OVERSPEND_ENVELOPE"
    NEGATIVE_WALLET = "NEGATIVE_WALLET"


class OperationWarning(BaseModel):
    """
    Non-blocking warning attached to a successful write.

    The write has already happened; the client decides how loudly to
    surface it.
    """
    type: WarningType
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class TransactionCreate(BaseModel):
    """
    Schema for recording a transaction.

    Example:
        {
            "amount": 12990,
            "currency_id": "CLP",
            "wallet_id": "550e8400-...",
            "type": "expense",
            "date": "2024-03-10T12:00:00Z",
            "envelope_id": "660e8400-...",
            "category_id": "770e8400-..."
        }
    """
    amount: Decimal = Field(..., description="Positive amount")
    currency_id: str = Field(..., min_length=1)
    wallet_id: UUID
    type: TransactionType
    date: datetime
    description: str | None = Field(default=None, max_length=255)
    envelope_id: UUID | None = None
    category_id: UUID | None = None
    subcategory_id: UUID | None = None
    target_wallet_id: UUID | None = None


class TransactionUpdate(BaseModel):
    """Editable transaction fields. Wallet and type are fixed once recorded."""
    amount: Decimal | None = None
    description: str | None = Field(default=None, max_length=255)
    date: datetime | None = None
    category_id: UUID | None = None
    subcategory_id: UUID | None = None


class TransactionFilters(BaseModel):
    """Query filters for listing transactions. All given filters apply together."""
    type: TransactionType | None = None
    wallet_id: UUID | None = None
    envelope_id: UUID | None = None
    category_id: UUID | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)
