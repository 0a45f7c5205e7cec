# =============================================================================
# core/models/envelope.py - Envelope & Budget Schemas
# =============================================================================
# These models define the API contract for envelope (budget bucket)
# operations, participants of shared envelopes and the budget assignment
# ledger between wallets and envelopes.
# =============================================================================

from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class EnvelopeType(str, Enum):
    """
    Kinds of envelope.

    - expense: Spending budget for a period (groceries, transport)
    - savings: Money set aside towards a goal
    - debt: Budget reserved for paying down a debt
    """
    EXPENSE = "expense"
    SAVINGS = "savings"
    DEBT = "debt"


class ParticipantRole(str, Enum):
    """
    Roles in a shared envelope.

    Permission order: owner > admin > contributor > viewer.
    There is exactly one owner, the creator.
    """
    OWNER = "owner"
    ADMIN = "admin"
    CONTRIBUTOR = "contributor"
    VIEWER = "viewer"


class AssignmentType(str, Enum):
    """Ledger row kinds in budget_assignments. Decreases carry negative amounts."""
    INITIAL = "initial"
    INCREASE = "increase"
    DECREASE = "decrease"
    TRANSFER = "transfer"


class EnvelopeCreate(BaseModel):
    """
    Schema for creating an envelope.

    Example:
        {"name": "Groceries", "type": "expense", "assigned_budget": 300000}
    """
    name: str = Field(..., max_length=100)
    type: EnvelopeType = Field(default=EnvelopeType.EXPENSE)
    assigned_budget: Decimal = Field(
        default=Decimal("0"),
        description="Budget tracked for the envelope; must not be negative"
    )
    currency_id: str | None = Field(default=None, description="Defaults to the user's main currency")
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)
    max_participants: int | None = Field(default=None, ge=1, le=50)


class EnvelopeUpdate(BaseModel):
    """Editable envelope fields (owner or admin)."""
    name: str | None = Field(default=None, max_length=100)
    type: EnvelopeType | None = None
    assigned_budget: Decimal | None = None
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)
    max_participants: int | None = Field(default=None, ge=1, le=50)


class ParticipantAdd(BaseModel):
    """Invite another user into a shared envelope."""
    user_id: UUID
    role: ParticipantRole = Field(default=ParticipantRole.CONTRIBUTOR)
    assigned_budget: Decimal = Field(default=Decimal("0"))


class EnvelopeCategoriesAdd(BaseModel):
    """Link one or more of the user's categories to an envelope."""
    category_ids: list[UUID] = Field(..., min_length=1)


class BudgetAssignmentCreate(BaseModel):
    """
    Move budget from a wallet into an envelope.

    The wallet's real balance is untouched; only its projected balance
    drops by the amount.

    Example:
        {"wallet_id": "550e8400-...", "amount": 50000}
    """
    wallet_id: UUID
    amount: Decimal = Field(..., description="Positive amount")
    description: str | None = Field(default=None, max_length=255)


class BudgetReturnRequest(BaseModel):
    """
    Release the user's unspent budget back to wallets.

    Without a wallet the free budget goes back to the wallets it came from,
    proportionally to what each contributed.
    """
    wallet_id: UUID | None = None


class EnvelopeTransferRequest(BaseModel):
    """
    Move free budget from one envelope to another.

    Example:
        {
            "source_envelope_id": "550e8400-...",
            "target_envelope_id": "660e8400-...",
            "wallet_id": "770e8400-...",
            "amount": 10000
        }
    """
    source_envelope_id: UUID
    target_envelope_id: UUID
    wallet_id: UUID
    amount: Decimal = Field(..., description="Positive amount")
