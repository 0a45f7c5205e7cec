# =============================================================================
# app/routers/envelopes.py - Envelope Endpoints
# =============================================================================
# Envelope CRUD, shared-envelope participants, linked categories and the
# budget ledger (assign, return, transfer between envelopes).
# All endpoints require authentication.
# =============================================================================

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user, AuthUser
from core.models.envelope import (
    BudgetAssignmentCreate,
    BudgetReturnRequest,
    EnvelopeCategoriesAdd,
    EnvelopeCreate,
    EnvelopeTransferRequest,
    EnvelopeUpdate,
    ParticipantAdd,
)
from core.services.budget_service import BudgetService
from core.services.envelope_category_service import EnvelopeCategoryService
from core.services.envelope_service import EnvelopeService

router = APIRouter()

EnvelopeId = Annotated[UUID, Path(description="Envelope UUID")]


# =============================================================================
# Collection Endpoints
# =============================================================================

@router.get("")
async def list_envelopes(user: AuthUser = Depends(get_current_user)):
    """
    List envelopes the user owns or participates in.
    """
    return {"success": True, "data": EnvelopeService.list_envelopes(user.id)}


@router.post("", status_code=201)
async def create_envelope(
    request: EnvelopeCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create an envelope. The creator becomes its owner.
    """
    envelope = EnvelopeService.create_envelope(
        user_id=user.id,
        name=request.name,
        envelope_type=request.type.value,
        assigned_budget=request.assigned_budget,
        currency_id=request.currency_id,
        color=request.color,
        emoji=request.emoji,
        max_participants=request.max_participants,
    )
    return {"success": True, "data": envelope}


@router.post("/transfer")
async def transfer_between_envelopes(
    request: EnvelopeTransferRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Move free budget from one envelope to another.

    Fails with INSUFFICIENT_BUDGET when the user's free budget in the
    source envelope is smaller than the amount.
    """
    result = BudgetService.transfer_between_envelopes(
        user_id=user.id,
        source_envelope_id=request.source_envelope_id,
        target_envelope_id=request.target_envelope_id,
        wallet_id=request.wallet_id,
        amount=request.amount,
    )
    return {"success": True, "data": result}


# =============================================================================
# Single Envelope Endpoints
# =============================================================================

@router.get("/{envelope_id}")
async def get_envelope(envelope_id: EnvelopeId, user: AuthUser = Depends(get_current_user)):
    """Get one envelope with the caller's role in it."""
    return {"success": True, "data": EnvelopeService.get_envelope(envelope_id, user.id)}


@router.put("/{envelope_id}")
async def update_envelope(
    envelope_id: EnvelopeId,
    request: EnvelopeUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Update an envelope. Owner or admin only."""
    envelope = EnvelopeService.update_envelope(
        envelope_id,
        user.id,
        request.model_dump(mode="json", exclude_unset=True),
    )
    return {"success": True, "data": envelope}


@router.delete("/{envelope_id}")
async def delete_envelope(envelope_id: EnvelopeId, user: AuthUser = Depends(get_current_user)):
    """Soft delete an envelope. Owner only."""
    EnvelopeService.delete_envelope(envelope_id, user.id)
    return {"success": True, "data": {"id": str(envelope_id), "deleted": True}}


@router.get("/{envelope_id}/summary")
async def spending_summary(
    envelope_id: EnvelopeId,
    user: AuthUser = Depends(get_current_user),
    date_from: Annotated[datetime | None, Query(description="Only expenses on or after")] = None,
    date_to: Annotated[datetime | None, Query(description="Only expenses on or before")] = None,
):
    """
    Budget vs. spend: total spent, available and percent used.
    """
    summary = EnvelopeService.spending_summary(envelope_id, user.id, date_from=date_from, date_to=date_to)
    return {"success": True, "data": summary}


# =============================================================================
# Participants
# =============================================================================

@router.get("/{envelope_id}/participants")
async def list_participants(envelope_id: EnvelopeId, user: AuthUser = Depends(get_current_user)):
    return {"success": True, "data": EnvelopeService.list_participants(envelope_id, user.id)}


@router.post("/{envelope_id}/participants", status_code=201)
async def add_participant(
    envelope_id: EnvelopeId,
    request: ParticipantAdd,
    user: AuthUser = Depends(get_current_user),
):
    """
    Add a user to a shared envelope. Owner or admin only.
    """
    participant = EnvelopeService.add_participant(
        envelope_id,
        user.id,
        participant_user_id=request.user_id,
        role=request.role.value,
        assigned_budget=request.assigned_budget,
    )
    return {"success": True, "data": participant}


@router.delete("/{envelope_id}/participants/{participant_user_id}")
async def remove_participant(
    envelope_id: EnvelopeId,
    participant_user_id: Annotated[UUID, Path(description="User UUID of the participant")],
    user: AuthUser = Depends(get_current_user),
):
    EnvelopeService.remove_participant(envelope_id, user.id, participant_user_id)
    return {"success": True, "data": {"user_id": str(participant_user_id), "removed": True}}


# =============================================================================
# Categories
# =============================================================================

@router.get("/{envelope_id}/categories")
async def list_envelope_categories(envelope_id: EnvelopeId, user: AuthUser = Depends(get_current_user)):
    """Linked categories with how much was spent in each."""
    categories = EnvelopeCategoryService.list_categories_with_spend(envelope_id, user.id)
    return {"success": True, "data": categories}


@router.post("/{envelope_id}/categories", status_code=201)
async def link_categories(
    envelope_id: EnvelopeId,
    request: EnvelopeCategoriesAdd,
    user: AuthUser = Depends(get_current_user),
):
    links = EnvelopeCategoryService.link_categories(envelope_id, user.id, request.category_ids)
    return {"success": True, "data": links}


@router.delete("/{envelope_id}/categories/{category_id}")
async def unlink_category(
    envelope_id: EnvelopeId,
    category_id: Annotated[UUID, Path(description="Category UUID")],
    user: AuthUser = Depends(get_current_user),
):
    EnvelopeCategoryService.unlink_category(envelope_id, user.id, category_id)
    return {"success": True, "data": {"category_id": str(category_id), "removed": True}}


# =============================================================================
# Budget Ledger
# =============================================================================

@router.get("/{envelope_id}/assignments")
async def list_assignments(envelope_id: EnvelopeId, user: AuthUser = Depends(get_current_user)):
    """
    Budget ledger of an envelope plus assigned / spent / free totals.
    """
    return {"success": True, "data": BudgetService.list_assignments(envelope_id, user.id)}


@router.post("/{envelope_id}/assignments", status_code=201)
async def assign_budget(
    envelope_id: EnvelopeId,
    request: BudgetAssignmentCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Reserve budget from a wallet for this envelope.

    The wallet's projected balance drops by the amount; its real balance
    doesn't change.
    """
    result = BudgetService.assign_budget(
        envelope_id,
        user.id,
        wallet_id=request.wallet_id,
        amount=request.amount,
        description=request.description,
    )
    return {"success": True, "data": result}


@router.post("/{envelope_id}/return")
async def return_budget(
    envelope_id: EnvelopeId,
    user: AuthUser = Depends(get_current_user),
    request: BudgetReturnRequest | None = None,
):
    """
    Give the user's unspent budget back to wallets.

    Without `wallet_id` it goes back to the funding wallets in proportion
    to what each contributed.
    """
    result = BudgetService.return_budget(
        envelope_id,
        user.id,
        target_wallet_id=request.wallet_id if request else None,
    )
    return {"success": True, "data": result}
