# =============================================================================
# core/models/subscription.py - Subscription Schemas
# =============================================================================
# These models define the API contract for plans, subscriptions and the
# invitation codes that link users to an owner's plan.
#
# Plan resolution order for a user:
#   own active subscription -> plan of the owner they're linked to -> free
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class PlanSlug(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    FAMILY = "family"


class SubscriptionStatus(str, Enum):
    """
    Lifecycle of a user_subscriptions row.

    - trial: Paid plan for TRIAL_DAYS without payment
    - active: Paid and current
    - payment_failed: Renewal failed; still usable until expires_at
    - expired / cancelled: No longer grants the plan
    - free: Explicitly on the free plan
    """
    TRIAL = "trial"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    PAYMENT_FAILED = "payment_failed"
    FREE = "free"


# Statuses that still grant the subscribed plan
ACTIVE_STATUSES = (
    SubscriptionStatus.TRIAL.value,
    SubscriptionStatus.ACTIVE.value,
    SubscriptionStatus.PAYMENT_FAILED.value,
)


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class HistoryEvent(str, Enum):
    """Event types written to subscription_history."""
    TRIAL_STARTED = "trial_started"
    UPGRADED = "upgraded"
    DOWNGRADED = "downgraded"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    INVITATION_CREATED = "invitation_created"
    INVITATION_REVOKED = "invitation_revoked"
    LINKED = "linked"
    UNLINKED = "unlinked"


class UpgradeRequest(BaseModel):
    """Example: {"plan": "premium", "period": "yearly"}"""
    plan: PlanSlug = Field(default=PlanSlug.PREMIUM)
    period: BillingPeriod = Field(default=BillingPeriod.MONTHLY)


class TrialRequest(BaseModel):
    plan: PlanSlug = Field(default=PlanSlug.PREMIUM)


class InvitationAccept(BaseModel):
    """Example: {"code": "K7M2QX9RTB4H"}"""
    code: str = Field(..., min_length=4, max_length=32)
