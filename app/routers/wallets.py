# =============================================================================
# app/routers/wallets.py - Wallet Endpoints
# =============================================================================
# Wallet CRUD plus the operations that move real money: manual balance
# adjustments, deposits/withdrawals and transfers between wallets.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user, AuthUser
from core.models.wallet import (
    BalanceAdjustment,
    DepositWithdrawRequest,
    WalletCreate,
    WalletTransferRequest,
    WalletUpdate,
)
from core.services.wallet_service import WalletService

router = APIRouter()


# =============================================================================
# Collection Endpoints
# =============================================================================

@router.get("")
async def list_wallets(user: AuthUser = Depends(get_current_user)):
    """
    List the user's wallets, newest first.

    Deleted wallets are not included.
    """
    wallets = WalletService.list_wallets(user.id)
    return {"success": True, "data": wallets}


@router.post("", status_code=201)
async def create_wallet(
    request: WalletCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a wallet.

    `currency_id` falls back to the user's main currency. A positive
    `initial_balance` is recorded as a deposit transaction.
    """
    wallet = WalletService.create_wallet(
        user_id=user.id,
        name=request.name,
        wallet_type=request.type.value,
        currency_id=request.currency_id,
        initial_balance=request.initial_balance,
        color=request.color,
        emoji=request.emoji,
        is_shared=request.is_shared,
        interest_rate=request.interest_rate,
    )
    return {"success": True, "data": wallet}


@router.get("/balance")
async def consolidated_balance(user: AuthUser = Depends(get_current_user)):
    """
    Sum of real and projected balances across wallets, per currency.
    """
    return {"success": True, "data": WalletService.consolidated_balance(user.id)}


@router.post("/transfer")
async def transfer(
    request: WalletTransferRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Move money between two wallets.

    Use "UNDECLARED" as either side for money coming from or going to
    somewhere outside the app. A NEGATIVE_WALLET warning is returned when
    the source ends below zero.
    """
    result = WalletService.transfer(
        user_id=user.id,
        source_wallet_id=request.source_wallet_id,
        target_wallet_id=request.target_wallet_id,
        amount=request.amount,
        description=request.description,
    )
    return {"success": True, "data": result}


# =============================================================================
# Single Wallet Endpoints
# =============================================================================

@router.get("/{wallet_id}")
async def get_wallet(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Get one wallet. User must own it."""
    return {"success": True, "data": WalletService.get_wallet(wallet_id, user.id)}


@router.put("/{wallet_id}")
async def update_wallet(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    request: WalletUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update name, type, color, emoji, sharing or interest rate.

    Balances change only through adjustments, movements and transactions.
    """
    wallet = WalletService.update_wallet(
        wallet_id,
        user.id,
        request.model_dump(mode="json", exclude_unset=True),
    )
    return {"success": True, "data": wallet}


@router.delete("/{wallet_id}")
async def delete_wallet(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Soft delete a wallet. Its balance must be zero."""
    WalletService.delete_wallet(wallet_id, user.id)
    return {"success": True, "data": {"id": str(wallet_id), "deleted": True}}


@router.post("/{wallet_id}/adjust")
async def adjust_balance(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    request: BalanceAdjustment,
    user: AuthUser = Depends(get_current_user),
):
    """
    Correct the balance by a signed delta.

    Both real and projected balances move by `delta` and an audit
    transaction is recorded.
    """
    result = WalletService.adjust_balance(
        wallet_id,
        user.id,
        delta=request.delta,
        description=request.description,
    )
    return {"success": True, "data": result}


@router.post("/{wallet_id}/deposit-withdraw")
async def deposit_or_withdraw(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    request: DepositWithdrawRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Deposit money into or withdraw money from a wallet.
    """
    result = WalletService.deposit_or_withdraw(
        wallet_id,
        user.id,
        amount=request.amount,
        kind=request.kind,
        description=request.description,
    )
    return {"success": True, "data": result}


@router.get("/{wallet_id}/linked-envelopes")
async def linked_envelopes(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Envelopes that share this wallet's currency."""
    return {"success": True, "data": WalletService.linked_envelopes(wallet_id, user.id)}


@router.get("/{wallet_id}/movements")
async def list_movements(
    wallet_id: Annotated[UUID, Path(description="Wallet UUID")],
    user: AuthUser = Depends(get_current_user),
    limit: Annotated[int, Query(ge=1, le=200, description="Max movements")] = 50,
):
    """Movement history of a wallet, newest first."""
    movements = WalletService.list_movements(wallet_id, user.id, limit=limit)
    return {"success": True, "data": movements}
