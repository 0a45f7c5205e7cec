# =============================================================================
# core/services/subscription_service.py - Plans, Subscriptions & Linking
# =============================================================================
# Resolves which plan a user is on, enforces plan capabilities and resource
# limits, and runs the subscription lifecycle:
#
#   free -> trial -> active -> (cancel | downgrade | expire) -> free
#
# Owners of a paid plan can invite other users with a one-off code; linked
# users inherit the owner's plan until they are unlinked.
#
# Every state change is written to subscription_history.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    ConflictError,
    InvalidInputError,
    PaymentNotAvailableError,
    PermissionDeniedError,
    PlanLimitReachedError,
    ResourceNotFoundError,
)
from core.models.subscription import (
    ACTIVE_STATUSES,
    BillingPeriod,
    HistoryEvent,
    InvitationStatus,
    PlanSlug,
    SubscriptionStatus,
)
from lib.supabase_client import SupabaseClient
from lib.utils import (
    days_from_now,
    generate_invitation_code,
    normalize_uuid,
    parse_timestamp,
    same_id,
    utc_now,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


# Days a paid period lasts before renewal
PERIOD_DAYS = {
    BillingPeriod.MONTHLY.value: 30,
    BillingPeriod.YEARLY.value: 365,
}


class SubscriptionService:
    """
    Service for plan resolution and subscription lifecycle.
    """

    # -------------------------------------------------------------------------
    # Plans
    # -------------------------------------------------------------------------

    @staticmethod
    def get_plan_by_slug(slug: str) -> dict[str, Any] | None:
        plans = SupabaseClient.fetch_rows("subscription_plans", {"slug": slug}, order_by=None, limit=1)
        return plans[0] if plans else None

    @staticmethod
    def _plan_details(plan: dict[str, Any]) -> dict[str, Any]:
        """Attach enabled capability keys and resource limits to a plan row."""
        capabilities = SupabaseClient.fetch_rows(
            "plan_capabilities", {"plan_id": plan["id"]}, order_by=None
        )
        limits = SupabaseClient.fetch_rows("plan_limits", {"plan_id": plan["id"]}, order_by=None)

        return {
            **plan,
            "capabilities": [c["capability_key"] for c in capabilities if c.get("enabled", True)],
            "limits": {l["resource_key"]: l.get("max_quantity") for l in limits},
        }

    @staticmethod
    def _free_plan() -> dict[str, Any]:
        plan = SubscriptionService.get_plan_by_slug(PlanSlug.FREE.value)
        if not plan:
            # Without a configured free plan nothing is limited
            logger.warning("Free plan is not configured; treating user as unlimited")
            return {
                "id": None,
                "slug": PlanSlug.FREE.value,
                "name": "Free",
                "max_linked_users": 0,
                "capabilities": [],
                "limits": {},
            }
        return SubscriptionService._plan_details(plan)

    @staticmethod
    def list_plans(currency: str | None = None) -> list[dict[str, Any]]:
        """
        Active plans with capabilities, limits and prices.

        Args:
            currency: Only include prices in this currency (defaults to DEFAULT_CURRENCY)
        """
        currency = currency or settings.DEFAULT_CURRENCY
        plans = SupabaseClient.fetch_rows(
            "subscription_plans", {"active": True}, order_by="created_at", desc=False
        )

        result = []
        for plan in plans:
            details = SubscriptionService._plan_details(plan)
            details["prices"] = SupabaseClient.fetch_rows(
                "payment_products",
                {"plan_id": plan["id"], "currency": currency, "active": True},
                order_by=None,
            )
            result.append(details)
        return result

    # -------------------------------------------------------------------------
    # Plan Resolution
    # -------------------------------------------------------------------------

    @staticmethod
    def get_own_subscription(user_id: UUID | str) -> dict[str, Any] | None:
        """Latest subscription of the user that still grants its plan."""
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("user_subscriptions")
                .select("*")
                .eq("user_id", normalize_uuid(user_id))
                .in_("status", list(ACTIVE_STATUSES))
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            logger.error(f"Failed to fetch subscription for user {user_id}: {e}")
            raise

    @staticmethod
    def get_link(user_id: UUID | str) -> dict[str, Any] | None:
        """The link making this user a member of someone else's plan."""
        links = SupabaseClient.fetch_rows(
            "linked_users", {"linked_user_id": user_id}, order_by=None, limit=1
        )
        return links[0] if links else None

    @staticmethod
    def get_active_plan(user_id: UUID | str) -> dict[str, Any]:
        """
        Resolve the plan a user is currently on.

        Order:
        1. The user's own active subscription
        2. The plan of the owner the user is linked to
        3. Free

        Returns:
            Dict with plan (incl. capabilities and limits), status, is_linked,
            owner_user_id, expires_at, trial_ends_at
        """
        own = SubscriptionService.get_own_subscription(user_id)
        if own:
            plan = SupabaseClient.fetch_row("subscription_plans", own["plan_id"])
            if plan:
                return SubscriptionService._resolved(plan, own, is_linked=False, owner_user_id=None)

        link = SubscriptionService.get_link(user_id)
        if link:
            owner_sub = SubscriptionService.get_own_subscription(link["owner_user_id"])
            if owner_sub:
                plan = SupabaseClient.fetch_row("subscription_plans", owner_sub["plan_id"])
                if plan:
                    return SubscriptionService._resolved(
                        plan, owner_sub, is_linked=True, owner_user_id=link["owner_user_id"]
                    )

        free = SubscriptionService._free_plan()
        return {
            "plan": free,
            "status": SubscriptionStatus.FREE.value,
            "is_linked": False,
            "owner_user_id": None,
            "expires_at": None,
            "trial_ends_at": None,
        }

    @staticmethod
    def _resolved(
        plan: dict[str, Any],
        subscription: dict[str, Any],
        is_linked: bool,
        owner_user_id: str | None,
    ) -> dict[str, Any]:
        return {
            "plan": SubscriptionService._plan_details(plan),
            "status": subscription["status"],
            "is_linked": is_linked,
            "owner_user_id": owner_user_id,
            "expires_at": subscription.get("expires_at"),
            "trial_ends_at": subscription.get("trial_ends_at"),
        }

    # -------------------------------------------------------------------------
    # Capabilities & Limits
    # -------------------------------------------------------------------------

    @staticmethod
    def has_capability(user_id: UUID | str, capability_key: str) -> bool:
        active = SubscriptionService.get_active_plan(user_id)
        return capability_key in active["plan"]["capabilities"]

    @staticmethod
    def can_create_resource(
        user_id: UUID | str,
        resource_key: str,
        current_count: int,
    ) -> dict[str, Any]:
        """
        Check a resource limit for the user's plan.

        A missing or null limit means unlimited.

        Returns:
            Dict with allowed, limit, current, remaining
        """
        active = SubscriptionService.get_active_plan(user_id)
        limit = active["plan"]["limits"].get(resource_key)

        if limit is None:
            return {"allowed": True, "limit": None, "current": current_count, "remaining": None}

        return {
            "allowed": current_count < limit,
            "limit": limit,
            "current": current_count,
            "remaining": max(limit - current_count, 0),
        }

    @staticmethod
    def check_resource_limit(user_id: UUID | str, resource_key: str, current_count: int) -> None:
        """
        Raise if the user can't create another `resource_key`.

        Raises:
            PlanLimitReachedError: If the plan limit is already reached
        """
        check = SubscriptionService.can_create_resource(user_id, resource_key, current_count)
        if not check["allowed"]:
            logger.info(f"User {user_id} hit plan limit for {resource_key} ({check['limit']})")
            raise PlanLimitReachedError(resource_key, check["limit"])

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @staticmethod
    def count_linked_users(owner_user_id: UUID | str) -> int:
        return len(SupabaseClient.fetch_rows("linked_users", {"owner_user_id": owner_user_id}, order_by=None))

    @staticmethod
    def get_status(user_id: UUID | str) -> dict[str, Any]:
        """
        Full subscription status for the settings screen.

        Returns:
            Dict with the active plan, linked user count, max linked users
            and whether the user can invite someone else
        """
        active = SubscriptionService.get_active_plan(user_id)
        linked_count = SubscriptionService.count_linked_users(user_id)
        max_linked = active["plan"].get("max_linked_users") or 0

        can_invite = (
            not active["is_linked"]
            and active["plan"]["slug"] != PlanSlug.FREE.value
            and linked_count < max_linked
        )

        return {
            "active_plan": active,
            "linked_users": linked_count,
            "max_linked_users": max_linked,
            "can_invite": can_invite,
        }

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_paid_plan(slug: str) -> dict[str, Any]:
        plan = SubscriptionService.get_plan_by_slug(slug)
        if not plan or plan.get("active") is False:
            raise ResourceNotFoundError("Plan", slug)
        if plan["slug"] == PlanSlug.FREE.value:
            raise InvalidInputError("The free plan can't be purchased", code="INVALID_PLAN")
        return plan

    @staticmethod
    def _reject_linked(user_id: UUID | str, action: str) -> None:
        if SubscriptionService.get_link(user_id):
            raise PermissionDeniedError(
                f"Linked users can't {action}; the plan belongs to the owner",
                code="LINKED_USER",
                suggestion="Ask the plan owner to unlink you first",
            )

    @staticmethod
    def start_trial(user_id: UUID | str, plan_slug: str = PlanSlug.PREMIUM.value) -> dict[str, Any]:
        """
        Start a trial of a paid plan.

        Trials are only for users who never had a subscription.

        Raises:
            InvalidInputError: If the plan has no trial or the user already subscribed
        """
        SubscriptionService._reject_linked(user_id, "start a trial")
        plan = SubscriptionService._require_paid_plan(plan_slug)

        trial_days = plan.get("trial_days")
        if trial_days is None:
            trial_days = settings.TRIAL_DAYS
        if trial_days <= 0:
            raise InvalidInputError(f"Plan {plan_slug} does not offer a trial", code="NO_TRIAL")

        if SupabaseClient.fetch_rows("user_subscriptions", {"user_id": user_id}, order_by=None, limit=1):
            raise InvalidInputError(
                "Trial is only available for new subscribers",
                code="TRIAL_UNAVAILABLE",
            )

        subscription = SupabaseClient.insert_row("user_subscriptions", {
            "user_id": normalize_uuid(user_id),
            "plan_id": plan["id"],
            "status": SubscriptionStatus.TRIAL.value,
            "started_at": utc_now_iso(),
            "trial_ends_at": days_from_now(trial_days),
        })

        SubscriptionService.log_event(
            user_id, HistoryEvent.TRIAL_STARTED, to_plan_id=plan["id"], metadata={"trial_days": trial_days}
        )
        logger.info(f"Started {plan_slug} trial for user: {user_id}")
        return subscription

    @staticmethod
    def upgrade(
        user_id: UUID | str,
        plan_slug: str,
        period: str = BillingPeriod.MONTHLY.value,
        platform: str = "sandbox",
    ) -> dict[str, Any]:
        """
        Move the user onto a paid plan.

        In sandbox payment mode the upgrade is applied immediately. In
        production it needs a payment provider, which isn't wired up.

        Raises:
            PaymentNotAvailableError: Outside sandbox mode
            PermissionDeniedError: If the user is linked to someone else's plan
        """
        if not settings.is_sandbox_payments:
            raise PaymentNotAvailableError()

        SubscriptionService._reject_linked(user_id, "upgrade")
        plan = SubscriptionService._require_paid_plan(plan_slug)

        expires_at = days_from_now(PERIOD_DAYS[period])
        current = SubscriptionService.get_own_subscription(user_id)

        if current:
            subscription = SupabaseClient.update_row("user_subscriptions", current["id"], {
                "plan_id": plan["id"],
                "status": SubscriptionStatus.ACTIVE.value,
                "platform": platform,
                "period": period,
                "expires_at": expires_at,
                "trial_ends_at": None,
            })
        else:
            subscription = SupabaseClient.insert_row("user_subscriptions", {
                "user_id": normalize_uuid(user_id),
                "plan_id": plan["id"],
                "status": SubscriptionStatus.ACTIVE.value,
                "platform": platform,
                "period": period,
                "started_at": utc_now_iso(),
                "expires_at": expires_at,
            })

        SubscriptionService.log_event(
            user_id,
            HistoryEvent.UPGRADED,
            from_plan_id=current["plan_id"] if current else None,
            to_plan_id=plan["id"],
            platform=platform,
            metadata={"period": period},
        )
        logger.info(f"Upgraded user {user_id} to {plan_slug} ({period})")
        return subscription

    @staticmethod
    def downgrade(user_id: UUID | str) -> dict[str, Any]:
        """
        Move the user back to the free plan and unlink everyone they invited.

        Raises:
            PermissionDeniedError: If the user is linked to someone else's plan
            InvalidInputError: If the user is already on free
        """
        SubscriptionService._reject_linked(user_id, "downgrade")

        current = SubscriptionService.get_own_subscription(user_id)
        if not current:
            raise InvalidInputError("Already on the free plan", code="ALREADY_FREE")

        free_plan = SubscriptionService.get_plan_by_slug(PlanSlug.FREE.value)
        subscription = SupabaseClient.update_row("user_subscriptions", current["id"], {
            "status": SubscriptionStatus.FREE.value,
            "plan_id": free_plan["id"] if free_plan else current["plan_id"],
            "expires_at": None,
            "trial_ends_at": None,
            "cancelled_at": utc_now_iso(),
        })

        unlinked = SubscriptionService._unlink_all(user_id)
        SubscriptionService.log_event(
            user_id,
            HistoryEvent.DOWNGRADED,
            from_plan_id=current["plan_id"],
            to_plan_id=free_plan["id"] if free_plan else None,
            metadata={"unlinked_users": unlinked},
        )
        logger.info(f"Downgraded user {user_id} to free, unlinked {unlinked} users")
        return subscription

    @staticmethod
    def cancel(user_id: UUID | str) -> dict[str, Any]:
        """
        Cancel the user's own subscription.

        Raises:
            InvalidInputError: If there's no active subscription to cancel
        """
        SubscriptionService._reject_linked(user_id, "cancel")

        current = SubscriptionService.get_own_subscription(user_id)
        if not current:
            raise InvalidInputError("No active subscription found", code="NO_SUBSCRIPTION")

        subscription = SupabaseClient.update_row("user_subscriptions", current["id"], {
            "status": SubscriptionStatus.CANCELLED.value,
            "cancelled_at": utc_now_iso(),
        })

        unlinked = SubscriptionService._unlink_all(user_id)
        SubscriptionService.log_event(
            user_id,
            HistoryEvent.CANCELLED,
            from_plan_id=current["plan_id"],
            metadata={"unlinked_users": unlinked},
        )
        logger.info(f"Cancelled subscription {current['id']} for user {user_id}")
        return subscription

    # -------------------------------------------------------------------------
    # Invitations & Linking
    # -------------------------------------------------------------------------

    @staticmethod
    def create_invitation(user_id: UUID | str, max_uses: int = 1) -> dict[str, Any]:
        """
        Create an invitation code for the user's paid plan.

        Raises:
            PermissionDeniedError: On the free plan or when linked to someone else
            InvalidInputError: When the plan's linked-user capacity is full
        """
        status = SubscriptionService.get_status(user_id)
        active = status["active_plan"]

        if active["is_linked"]:
            raise PermissionDeniedError("Linked users can't invite others", code="LINKED_USER")
        if active["plan"]["slug"] == PlanSlug.FREE.value:
            raise PermissionDeniedError(
                "The free plan can't invite users",
                code="UPGRADE_REQUIRED",
                suggestion="Upgrade to a plan with linked users",
            )
        if status["linked_users"] >= status["max_linked_users"]:
            raise InvalidInputError(
                f"Maximum linked users reached ({status['max_linked_users']})",
                code="LINKED_USERS_LIMIT",
            )

        invitation = SupabaseClient.insert_row("invitation_codes", {
            "code": generate_invitation_code(),
            "owner_user_id": normalize_uuid(user_id),
            "plan_id": active["plan"]["id"],
            "status": InvitationStatus.PENDING.value,
            "max_uses": max_uses,
            "uses_count": 0,
            "expires_at": days_from_now(settings.INVITATION_EXPIRY_DAYS),
        })

        SubscriptionService.log_event(
            user_id, HistoryEvent.INVITATION_CREATED, metadata={"invitation_id": invitation["id"]}
        )
        logger.info(f"Created invitation {invitation['id']} for owner {user_id}")
        return invitation

    @staticmethod
    def list_invitations(user_id: UUID | str) -> list[dict[str, Any]]:
        return SupabaseClient.fetch_rows("invitation_codes", {"owner_user_id": user_id})

    @staticmethod
    def revoke_invitation(user_id: UUID | str, invitation_id: UUID | str) -> dict[str, Any]:
        invitation = SupabaseClient.fetch_row("invitation_codes", invitation_id)
        if not invitation or not same_id(invitation["owner_user_id"], user_id):
            raise ResourceNotFoundError("Invitation", normalize_uuid(invitation_id))
        if invitation["status"] != InvitationStatus.PENDING.value:
            raise InvalidInputError("Only pending invitations can be revoked", code="INVITATION_NOT_PENDING")

        revoked = SupabaseClient.update_row(
            "invitation_codes", invitation_id, {"status": InvitationStatus.REVOKED.value}
        )
        SubscriptionService.log_event(
            user_id, HistoryEvent.INVITATION_REVOKED, metadata={"invitation_id": invitation["id"]}
        )
        return revoked

    @staticmethod
    def _find_valid_invitation(code: str) -> dict[str, Any] | None:
        rows = SupabaseClient.fetch_rows(
            "invitation_codes",
            {"code": code.strip().upper(), "status": InvitationStatus.PENDING.value},
            order_by=None,
            limit=1,
        )
        if not rows:
            return None

        invitation = rows[0]
        expires_at = parse_timestamp(invitation.get("expires_at"))
        if expires_at and expires_at <= utc_now():
            SupabaseClient.update_row(
                "invitation_codes", invitation["id"], {"status": InvitationStatus.EXPIRED.value}
            )
            return None
        if invitation.get("uses_count", 0) >= invitation.get("max_uses", 1):
            return None
        return invitation

    @staticmethod
    def accept_invitation(user_id: UUID | str, code: str) -> dict[str, Any]:
        """
        Link the user to the invitation owner's plan.

        The accepting user's own subscription, if any, is cancelled since
        they now use the owner's plan.

        Raises:
            InvalidInputError: Unknown/expired code, own code, circular link, owner at capacity
            ConflictError: If the user is already linked to a plan
        """
        invitation = SubscriptionService._find_valid_invitation(code)
        if not invitation:
            raise InvalidInputError(
                "Invalid, expired, or already used invitation code",
                code="INVALID_INVITATION",
            )

        owner_id = invitation["owner_user_id"]
        if same_id(owner_id, user_id):
            raise InvalidInputError("You can't accept your own invitation", code="OWN_INVITATION")

        if SubscriptionService.get_link(user_id):
            raise ConflictError("User is already linked to another plan", code="ALREADY_LINKED")

        # The owner must not already be a member of this user's plan
        circular = SupabaseClient.fetch_rows(
            "linked_users",
            {"owner_user_id": user_id, "linked_user_id": owner_id},
            order_by=None,
            limit=1,
        )
        if circular:
            raise InvalidInputError("Circular linking is not allowed", code="CIRCULAR_LINK")

        owner_plan = SupabaseClient.fetch_row("subscription_plans", invitation["plan_id"])
        max_linked = (owner_plan or {}).get("max_linked_users") or 0
        if SubscriptionService.count_linked_users(owner_id) >= max_linked:
            raise InvalidInputError("The plan owner has no free seats", code="LINKED_USERS_LIMIT")

        uses = invitation.get("uses_count", 0) + 1
        invitation_update = {"uses_count": uses}
        if uses >= invitation.get("max_uses", 1):
            invitation_update["status"] = InvitationStatus.ACCEPTED.value
        SupabaseClient.update_row("invitation_codes", invitation["id"], invitation_update)

        link = SupabaseClient.insert_row("linked_users", {
            "owner_user_id": owner_id,
            "linked_user_id": normalize_uuid(user_id),
            "linked_at": utc_now_iso(),
        })

        own = SubscriptionService.get_own_subscription(user_id)
        if own:
            SupabaseClient.update_row("user_subscriptions", own["id"], {
                "status": SubscriptionStatus.CANCELLED.value,
                "cancelled_at": utc_now_iso(),
            })

        SubscriptionService.log_event(
            user_id,
            HistoryEvent.LINKED,
            to_plan_id=invitation["plan_id"],
            metadata={"owner_user_id": owner_id},
        )
        logger.info(f"User {user_id} linked to owner {owner_id}")
        return link

    @staticmethod
    def list_linked_users(owner_user_id: UUID | str) -> list[dict[str, Any]]:
        """Users linked to this owner, with their public profile."""
        links = SupabaseClient.fetch_rows("linked_users", {"owner_user_id": owner_user_id}, order_by="linked_at")
        users = {
            u["id"]: u
            for u in SupabaseClient.fetch_rows_in("users", "id", [l["linked_user_id"] for l in links])
        }

        return [
            {
                **link,
                "name": users.get(link["linked_user_id"], {}).get("name"),
                "email": users.get(link["linked_user_id"], {}).get("email"),
            }
            for link in links
        ]

    @staticmethod
    def unlink_user(owner_user_id: UUID | str, linked_user_id: UUID | str) -> None:
        """
        Remove a user from the owner's plan.

        Raises:
            ResourceNotFoundError: If the user isn't linked to this owner
        """
        deleted = SupabaseClient.delete_rows(
            "linked_users",
            {"owner_user_id": owner_user_id, "linked_user_id": linked_user_id},
        )
        if not deleted:
            raise ResourceNotFoundError("Linked user", normalize_uuid(linked_user_id))

        SubscriptionService.log_event(
            linked_user_id, HistoryEvent.UNLINKED, metadata={"owner_user_id": normalize_uuid(owner_user_id)}
        )
        logger.info(f"Unlinked user {linked_user_id} from owner {owner_user_id}")

    @staticmethod
    def _unlink_all(owner_user_id: UUID | str) -> int:
        links = SupabaseClient.fetch_rows("linked_users", {"owner_user_id": owner_user_id}, order_by=None)
        if not links:
            return 0

        SupabaseClient.delete_rows("linked_users", {"owner_user_id": owner_user_id})
        for link in links:
            SubscriptionService.log_event(
                link["linked_user_id"],
                HistoryEvent.UNLINKED,
                metadata={"owner_user_id": normalize_uuid(owner_user_id)},
            )
        return len(links)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @staticmethod
    def log_event(
        user_id: UUID | str,
        event: HistoryEvent,
        from_plan_id: str | None = None,
        to_plan_id: str | None = None,
        platform: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return SupabaseClient.insert_row("subscription_history", {
            "user_id": normalize_uuid(user_id),
            "event_type": event.value,
            "from_plan_id": from_plan_id,
            "to_plan_id": to_plan_id,
            "platform": platform,
            "metadata": metadata or {},
        })

    @staticmethod
    def get_history(user_id: UUID | str) -> list[dict[str, Any]]:
        return SupabaseClient.fetch_rows("subscription_history", {"user_id": user_id})

    # -------------------------------------------------------------------------
    # Maintenance (run by Celery beat)
    # -------------------------------------------------------------------------

    @staticmethod
    def expire_invitations() -> int:
        """Mark pending invitations past expires_at as expired."""
        client = SupabaseClient.get_client()
        response = (
            client.table("invitation_codes")
            .update({"status": InvitationStatus.EXPIRED.value, "updated_at": utc_now_iso()})
            .eq("status", InvitationStatus.PENDING.value)
            .lt("expires_at", utc_now_iso())
            .execute()
        )
        expired = len(response.data or [])
        if expired:
            logger.info(f"Expired {expired} invitation codes")
        return expired

    @staticmethod
    def expire_trials() -> int:
        """Move trials past trial_ends_at to expired."""
        client = SupabaseClient.get_client()
        response = (
            client.table("user_subscriptions")
            .select("*")
            .eq("status", SubscriptionStatus.TRIAL.value)
            .lt("trial_ends_at", utc_now_iso())
            .execute()
        )
        return SubscriptionService._expire(response.data or [], reason="trial_ended")

    @staticmethod
    def expire_paid_subscriptions() -> int:
        """
        Move paid subscriptions past expires_at (plus grace period) to expired.
        """
        cutoff = days_from_now(-settings.GRACE_PERIOD_DAYS)
        client = SupabaseClient.get_client()
        response = (
            client.table("user_subscriptions")
            .select("*")
            .in_("status", [SubscriptionStatus.ACTIVE.value, SubscriptionStatus.PAYMENT_FAILED.value])
            .lt("expires_at", cutoff)
            .execute()
        )
        return SubscriptionService._expire(response.data or [], reason="period_ended")

    @staticmethod
    def _expire(subscriptions: list[dict[str, Any]], reason: str) -> int:
        for subscription in subscriptions:
            SupabaseClient.update_row(
                "user_subscriptions", subscription["id"], {"status": SubscriptionStatus.EXPIRED.value}
            )
            SubscriptionService._unlink_all(subscription["user_id"])
            SubscriptionService.log_event(
                subscription["user_id"],
                HistoryEvent.EXPIRED,
                from_plan_id=subscription["plan_id"],
                metadata={"reason": reason},
            )
        if subscriptions:
            logger.info(f"Expired {len(subscriptions)} subscriptions ({reason})")
        return len(subscriptions)
