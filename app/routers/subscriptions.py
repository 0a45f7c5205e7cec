# =============================================================================
# app/routers/subscriptions.py - Plan & Subscription Endpoints
# =============================================================================
# Subscription status, the plan catalog, trial/upgrade/downgrade/cancel,
# invitation codes and linked users.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user, AuthUser
from core.models.subscription import InvitationAccept, TrialRequest, UpgradeRequest
from core.services.subscription_service import SubscriptionService

router = APIRouter()


# =============================================================================
# Status & Plans
# =============================================================================

@router.get("/status")
async def subscription_status(user: AuthUser = Depends(get_current_user)):
    """
    The plan the user is on (own, inherited from an owner, or free),
    with capabilities, limits and linked-user seats.
    """
    return {"success": True, "data": SubscriptionService.get_status(user.id)}


@router.get("/plans")
async def list_plans(
    user: AuthUser = Depends(get_current_user),
    currency: Annotated[str | None, Query(description="Price currency")] = None,
):
    return {"success": True, "data": SubscriptionService.list_plans(currency)}


# =============================================================================
# Lifecycle
# =============================================================================

@router.post("/trial", status_code=201)
async def start_trial(
    user: AuthUser = Depends(get_current_user),
    request: TrialRequest | None = None,
):
    """Start a trial of a paid plan. Only for users who never subscribed."""
    plan = (request or TrialRequest()).plan.value
    return {"success": True, "data": SubscriptionService.start_trial(user.id, plan)}


@router.post("/upgrade")
async def upgrade(
    request: UpgradeRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Move onto a paid plan.

    Applied immediately when PAYMENT_MODE is sandbox; returns 501 otherwise.
    """
    subscription = SubscriptionService.upgrade(
        user.id, plan_slug=request.plan.value, period=request.period.value
    )
    return {"success": True, "data": subscription}


@router.post("/downgrade")
async def downgrade(user: AuthUser = Depends(get_current_user)):
    """Go back to the free plan. Linked users are unlinked."""
    return {"success": True, "data": SubscriptionService.downgrade(user.id)}


@router.post("/cancel")
async def cancel(user: AuthUser = Depends(get_current_user)):
    return {"success": True, "data": SubscriptionService.cancel(user.id)}


# =============================================================================
# Invitations
# =============================================================================

@router.get("/invitations")
async def list_invitations(user: AuthUser = Depends(get_current_user)):
    return {"success": True, "data": SubscriptionService.list_invitations(user.id)}


@router.post("/invitations", status_code=201)
async def create_invitation(user: AuthUser = Depends(get_current_user)):
    """
    Create a one-use invitation code for the user's plan.
    """
    return {"success": True, "data": SubscriptionService.create_invitation(user.id)}


@router.post("/invitations/accept")
async def accept_invitation(
    request: InvitationAccept,
    user: AuthUser = Depends(get_current_user),
):
    """Join the plan of the user who issued the code."""
    return {"success": True, "data": SubscriptionService.accept_invitation(user.id, request.code)}


@router.delete("/invitations/{invitation_id}")
async def revoke_invitation(
    invitation_id: Annotated[UUID, Path(description="Invitation UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return {"success": True, "data": SubscriptionService.revoke_invitation(user.id, invitation_id)}


# =============================================================================
# Linked Users & History
# =============================================================================

@router.get("/linked-users")
async def list_linked_users(user: AuthUser = Depends(get_current_user)):
    return {"success": True, "data": SubscriptionService.list_linked_users(user.id)}


@router.delete("/linked-users/{linked_user_id}")
async def unlink_user(
    linked_user_id: Annotated[UUID, Path(description="UUID of the linked user")],
    user: AuthUser = Depends(get_current_user),
):
    SubscriptionService.unlink_user(user.id, linked_user_id)
    return {"success": True, "data": {"user_id": str(linked_user_id), "unlinked": True}}


@router.get("/history")
async def history(user: AuthUser = Depends(get_current_user)):
    """Subscription events of the user, newest first."""
    return {"success": True, "data": SubscriptionService.get_history(user.id)}
