# =============================================================================
# app/routers/transactions.py - Transaction Endpoints
# =============================================================================
# Recording, listing, editing and deleting transactions. Writes that leave
# an envelope over budget or a wallet below zero still succeed and carry
# `warnings` in the response.
# All endpoints require authentication.
# =============================================================================

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user, AuthUser
from core.models.transaction import TransactionCreate, TransactionType, TransactionUpdate
from core.services.transaction_service import TransactionService

router = APIRouter()


@router.get("")
async def list_transactions(
    user: AuthUser = Depends(get_current_user),
    type: Annotated[TransactionType | None, Query(description="Filter by type")] = None,
    wallet_id: Annotated[UUID | None, Query(description="Filter by wallet")] = None,
    envelope_id: Annotated[UUID | None, Query(description="Filter by envelope")] = None,
    category_id: Annotated[UUID | None, Query(description="Filter by category")] = None,
    date_from: Annotated[datetime | None, Query(description="On or after")] = None,
    date_to: Annotated[datetime | None, Query(description="On or before")] = None,
    limit: Annotated[int, Query(ge=1, le=500, description="Page size")] = 50,
    offset: Annotated[int, Query(ge=0, description="Rows to skip")] = 0,
):
    """
    List the user's transactions, newest first.

    All filters apply together. `total` is the number of matching rows
    before pagination.
    """
    transactions, total = TransactionService.list_transactions(
        user_id=user.id,
        transaction_type=type.value if type else None,
        wallet_id=wallet_id,
        envelope_id=envelope_id,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )

    return {
        "success": True,
        "data": transactions,
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.post("", status_code=201)
async def create_transaction(
    request: TransactionCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Record a transaction and update wallet and envelope balances.

    Returns the stored transaction and any OVERSPEND_ENVELOPE or
    NEGATIVE_WALLET warnings.
    """
    result = TransactionService.create_transaction(
        user_id=user.id,
        amount=request.amount,
        currency_id=request.currency_id,
        wallet_id=request.wallet_id,
        transaction_type=request.type.value,
        date=request.date,
        description=request.description,
        envelope_id=request.envelope_id,
        category_id=request.category_id,
        subcategory_id=request.subcategory_id,
        target_wallet_id=request.target_wallet_id,
    )
    return {"success": True, "data": result["transaction"], "warnings": result["warnings"]}


@router.get("/totals")
async def totals(
    user: AuthUser = Depends(get_current_user),
    date_from: Annotated[datetime | None, Query(description="On or after")] = None,
    date_to: Annotated[datetime | None, Query(description="On or before")] = None,
):
    """Total income, total expenses and their difference."""
    return {"success": True, "data": TransactionService.totals(user.id, date_from=date_from, date_to=date_to)}


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: Annotated[UUID, Path(description="Transaction UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return {"success": True, "data": TransactionService.get_transaction(transaction_id, user.id)}


@router.put("/{transaction_id}")
async def update_transaction(
    transaction_id: Annotated[UUID, Path(description="Transaction UUID")],
    request: TransactionUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Edit amount, description, date or category.

    Changing the amount re-applies the transaction to its wallet and
    envelope.
    """
    result = TransactionService.update_transaction(
        transaction_id,
        user.id,
        request.model_dump(mode="json", exclude_unset=True),
    )
    return {"success": True, "data": result["transaction"], "warnings": result["warnings"]}


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: Annotated[UUID, Path(description="Transaction UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Soft delete a transaction and revert its balance effect."""
    TransactionService.delete_transaction(transaction_id, user.id)
    return {"success": True, "data": {"id": str(transaction_id), "deleted": True}}
