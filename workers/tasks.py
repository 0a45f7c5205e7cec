# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Periodic maintenance of the subscription tables, scheduled by Celery beat
# (see CeleryConfig.beat_schedule).
#
# Tasks:
# - expire_invitations: Pending invitation codes past expires_at -> expired
# - expire_trials: Trials past trial_ends_at -> expired
# - expire_paid_subscriptions: Paid plans past expires_at + grace -> expired
#
# Database errors are retried with the worker-level retry settings.
# =============================================================================

import logging
from typing import Any
from celery import shared_task

from core.services.subscription_service import SubscriptionService
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="workers.tasks.expire_invitations")
def expire_invitations(self) -> dict[str, Any]:
    """
    Mark pending invitation codes past their expiry as expired.

    Returns:
        Dict with success flag and number of expired codes
    """
    try:
        expired = SubscriptionService.expire_invitations()
    except SupabaseClientError as e:
        logger.warning(f"expire_invitations failed, retrying: {e}")
        raise self.retry(exc=e)

    return {"success": True, "expired": expired}


@shared_task(bind=True, name="workers.tasks.expire_trials")
def expire_trials(self) -> dict[str, Any]:
    """
    Move trials whose trial_ends_at has passed to expired.

    Users linked to an expired owner are unlinked.
    """
    try:
        expired = SubscriptionService.expire_trials()
    except SupabaseClientError as e:
        logger.warning(f"expire_trials failed, retrying: {e}")
        raise self.retry(exc=e)

    return {"success": True, "expired": expired}


@shared_task(bind=True, name="workers.tasks.expire_paid_subscriptions")
def expire_paid_subscriptions(self) -> dict[str, Any]:
    """
    Move paid subscriptions past expires_at plus GRACE_PERIOD_DAYS to expired.
    """
    try:
        expired = SubscriptionService.expire_paid_subscriptions()
    except SupabaseClientError as e:
        logger.warning(f"expire_paid_subscriptions failed, retrying: {e}")
        raise self.retry(exc=e)

    return {"success": True, "expired": expired}
