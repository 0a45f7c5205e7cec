# =============================================================================
# core/models/wallet.py - Wallet Schemas
# =============================================================================
# These models define the API contract for wallet operations:
# - WalletType / MovementType: Enums for wallet kinds and ledger entries
# - WalletCreate / WalletUpdate: CRUD payloads
# - BalanceAdjustment: Manual correction of a wallet balance
# - DepositWithdrawRequest: Money entering or leaving a single wallet
# - WalletTransferRequest: Money moving between wallets
#
# A wallet holds real money in one currency. `real_balance` is what the
# account actually holds; `projected_balance` is what remains after the
# budget reserved for envelopes.
# =============================================================================

from decimal import Decimal
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# Sentinel for transfers whose other side is outside the app
UNDECLARED_WALLET = "UNDECLARED"


class WalletType(str, Enum):
    """
    Kinds of wallet a user can hold.

    - debit: Checking / debit card account
    - credit: Credit card (balance usually negative)
    - cash: Physical cash
    - savings: Savings account
    - investment: Brokerage or investment account
    - loan: Money lent or borrowed
    """
    DEBIT = "debit"
    CREDIT = "credit"
    CASH = "cash"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    LOAN = "loan"


class MovementType(str, Enum):
    """Entries in a wallet's movement history."""
    CREATION = "creation"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    EXPENSE = "expense"
    ENVELOPE_ASSIGNMENT = "envelope_assignment"
    ENVELOPE_RETURN = "envelope_return"
    ADJUSTMENT = "adjustment"


class WalletCreate(BaseModel):
    """
    Schema for creating a wallet.

    Example:
        {
            "name": "Checking",
            "type": "debit",
            "currency_id": "CLP",
            "initial_balance": 150000
        }
    """

    name: str = Field(
        ...,
        max_length=100,
        description="Display name of the wallet"
    )

    type: WalletType = Field(
        ...,
        description="Kind of wallet"
    )

    # Falls back to the user's main currency when omitted
    currency_id: str | None = Field(
        default=None,
        description="Currency code (e.g. CLP, USD)"
    )

    initial_balance: Decimal = Field(
        default=Decimal("0"),
        description="Opening balance; must not be negative"
    )

    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)
    is_shared: bool = Field(default=False)

    interest_rate: Decimal | None = Field(
        default=None,
        description="Annual interest rate in percent (credit, loans, savings)"
    )


class WalletUpdate(BaseModel):
    """Fields that can change after creation. Balances change only through movements."""
    name: str | None = Field(default=None, max_length=100)
    type: WalletType | None = None
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)
    is_shared: bool | None = None
    interest_rate: Decimal | None = None


class BalanceAdjustment(BaseModel):
    """
    Manual correction of a wallet balance.

    Example:
        {"delta": -2500, "description": "Bank fee"}
    """
    delta: Decimal = Field(..., description="Signed amount to add to the balance")
    description: str | None = Field(default=None, max_length=255)


class DepositWithdrawRequest(BaseModel):
    """Money entering (deposit) or leaving (withdrawal) one wallet."""
    amount: Decimal = Field(..., description="Positive amount")
    kind: Literal["deposit", "withdrawal"] = Field(..., description="Direction of the movement")
    description: str | None = Field(default=None, max_length=255)


class WalletTransferRequest(BaseModel):
    """
    Money moving between two wallets.

    Either side may be "UNDECLARED" for money coming from or going to
    somewhere the app doesn't track.

    Example:
        {
            "source_wallet_id": "550e8400-...",
            "target_wallet_id": "UNDECLARED",
            "amount": 20000
        }
    """
    source_wallet_id: str = Field(..., description="Wallet id or UNDECLARED")
    target_wallet_id: str = Field(..., description="Wallet id or UNDECLARED")
    amount: Decimal = Field(..., description="Positive amount")
    description: str | None = Field(default=None, max_length=255)

    @field_validator("source_wallet_id", "target_wallet_id")
    @classmethod
    def validate_wallet_ref(cls, v: str) -> str:
        """Accept a wallet UUID (normalized) or the UNDECLARED marker."""
        v = v.strip()
        if v.upper() == UNDECLARED_WALLET:
            return UNDECLARED_WALLET
        try:
            return str(UUID(v))
        except ValueError:
            raise ValueError(f"must be a wallet UUID or {UNDECLARED_WALLET}")
