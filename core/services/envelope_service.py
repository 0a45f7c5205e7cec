# =============================================================================
# core/services/envelope_service.py - Envelope Business Logic
# =============================================================================
# Handles envelope CRUD, access control for shared envelopes and the
# participant list.
#
# Access rules:
# - Any participant can read an envelope
# - Owner and admins can edit it and manage participants
# - Only the owner can delete it
#
# Budget movements (assignments, returns, transfers) live in
# budget_service.py.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    ConflictError,
    EnvelopeNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from core.models.envelope import EnvelopeType, ParticipantRole
from core.services.config_service import ConfigService
from core.services.subscription_service import SubscriptionService
from lib.money import to_amount, to_decimal, percent, sum_amounts
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, to_iso

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = ("name", "type", "assigned_budget", "color", "emoji", "max_participants")

MANAGER_ROLES = (ParticipantRole.OWNER.value, ParticipantRole.ADMIN.value)


class EnvelopeService:
    """
    Service for envelope management operations.
    """

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _clean_name(name: str | None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidInputError("Envelope name is required", code="INVALID_NAME")
        return cleaned

    @staticmethod
    def _envelope_type(value: str) -> str:
        try:
            return EnvelopeType(value).value
        except ValueError:
            raise InvalidInputError(
                f"Invalid envelope type: {value}",
                code="INVALID_ENVELOPE_TYPE",
                details={"allowed": [t.value for t in EnvelopeType]},
            )

    @staticmethod
    def _budget(value: Any) -> float:
        budget = to_decimal(value)
        if budget < 0:
            raise InvalidInputError(
                "Budget can't be negative",
                code="INVALID_AMOUNT",
                details={"assigned_budget": to_amount(budget)},
            )
        return to_amount(budget)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @staticmethod
    def create_envelope(
        user_id: UUID | str,
        name: str,
        envelope_type: str = EnvelopeType.EXPENSE.value,
        assigned_budget: Any = 0,
        currency_id: str | None = None,
        color: str | None = None,
        emoji: str | None = None,
        max_participants: int | None = None,
    ) -> dict[str, Any]:
        """
        Create an envelope and register the creator as its owner.

        Args:
            user_id: Creator and owner
            name: Display name (required, trimmed)
            envelope_type: One of EnvelopeType
            assigned_budget: Tracked budget, must not be negative
            currency_id: Defaults to the user's main currency, then DEFAULT_CURRENCY

        Returns:
            Created envelope dict

        Raises:
            InvalidInputError: Blank name, bad type, negative budget, bad currency
            PlanLimitReachedError: If the plan's envelope limit is reached
        """
        user_id_str = normalize_uuid(user_id)
        clean_name = EnvelopeService._clean_name(name)
        type_value = EnvelopeService._envelope_type(envelope_type)
        budget = EnvelopeService._budget(assigned_budget)

        owned = SupabaseClient.fetch_rows("envelopes", {"user_id": user_id_str}, order_by=None)
        SubscriptionService.check_resource_limit(user_id_str, "envelopes", len(owned))

        currency = ConfigService.resolve_currency(user_id_str, currency_id, fallback=settings.DEFAULT_CURRENCY)

        envelope = SupabaseClient.insert_row("envelopes", {
            "name": clean_name,
            "type": type_value,
            "currency_id": currency,
            "assigned_budget": budget,
            "spent": 0,
            "color": color,
            "emoji": emoji,
            "is_shared": False,
            "max_participants": max_participants,
            "user_id": user_id_str,
        })

        SupabaseClient.insert_row("envelope_participants", {
            "envelope_id": envelope["id"],
            "user_id": user_id_str,
            "role": ParticipantRole.OWNER.value,
            "assigned_budget": budget,
            "spent": 0,
        })

        logger.info(f"Created envelope: {envelope['id']} for user: {user_id_str}")
        return envelope

    @staticmethod
    def list_envelopes(user_id: UUID | str) -> list[dict[str, Any]]:
        """
        Envelopes the user owns or participates in, newest first.
        """
        owned = SupabaseClient.fetch_rows("envelopes", {"user_id": user_id})
        memberships = SupabaseClient.fetch_rows("envelope_participants", {"user_id": user_id}, order_by=None)

        seen = {e["id"] for e in owned}
        shared_ids = [m["envelope_id"] for m in memberships if m["envelope_id"] not in seen]
        shared = SupabaseClient.fetch_rows_in("envelopes", "id", shared_ids)

        envelopes = owned + [e for e in shared if e["id"] not in seen]
        envelopes.sort(key=lambda e: e.get("created_at") or "", reverse=True)
        return envelopes

    @staticmethod
    def get_participant(envelope_id: UUID | str, user_id: UUID | str) -> dict[str, Any] | None:
        rows = SupabaseClient.fetch_rows(
            "envelope_participants",
            {"envelope_id": envelope_id, "user_id": user_id},
            order_by=None,
            limit=1,
        )
        return rows[0] if rows else None

    @staticmethod
    def get_role(envelope: dict[str, Any], user_id: UUID | str) -> str | None:
        """Role of the user in the envelope, or None if they have no access."""
        if same_id(envelope["user_id"], user_id):
            return ParticipantRole.OWNER.value
        participant = EnvelopeService.get_participant(envelope["id"], user_id)
        return participant["role"] if participant else None

    @staticmethod
    def get_envelope(
        envelope_id: UUID | str,
        user_id: UUID | str,
        roles: tuple[str, ...] | None = None,
    ) -> dict[str, Any]:
        """
        Get an envelope the user can access.

        Args:
            envelope_id: The envelope UUID
            user_id: The requesting user
            roles: If given, the user's role must be one of these

        Returns:
            Envelope dict with the caller's `role` attached

        Raises:
            EnvelopeNotFoundError: If the envelope doesn't exist or was deleted
            PermissionDeniedError: If the user isn't a participant or lacks the role
        """
        envelope = SupabaseClient.fetch_row("envelopes", envelope_id)
        if not envelope:
            raise EnvelopeNotFoundError(normalize_uuid(envelope_id))

        role = EnvelopeService.get_role(envelope, user_id)
        if role is None:
            raise PermissionDeniedError(
                "You don't have access to this envelope",
                details={"envelope_id": envelope["id"]},
            )
        if roles and role not in roles:
            raise PermissionDeniedError(
                f"This action requires one of: {', '.join(roles)}",
                details={"envelope_id": envelope["id"], "role": role},
            )

        return {**envelope, "role": role}

    @staticmethod
    def update_envelope(
        envelope_id: UUID | str,
        user_id: UUID | str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """Update an envelope (owner or admin)."""
        envelope = EnvelopeService.get_envelope(envelope_id, user_id, roles=MANAGER_ROLES)

        update_data = {
            key: value for key, value in fields.items()
            if key in UPDATABLE_FIELDS and value is not None
        }
        if "name" in update_data:
            update_data["name"] = EnvelopeService._clean_name(update_data["name"])
        if "type" in update_data:
            update_data["type"] = EnvelopeService._envelope_type(update_data["type"])
        if "assigned_budget" in update_data:
            update_data["assigned_budget"] = EnvelopeService._budget(update_data["assigned_budget"])

        if not update_data:
            return envelope

        updated = SupabaseClient.update_row("envelopes", envelope["id"], update_data)
        logger.info(f"Updated envelope: {envelope['id']}")
        return {**(updated or envelope), "role": envelope["role"]}

    @staticmethod
    def delete_envelope(envelope_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """Soft delete an envelope (owner only)."""
        envelope = EnvelopeService.get_envelope(
            envelope_id, user_id, roles=(ParticipantRole.OWNER.value,)
        )
        deleted = SupabaseClient.soft_delete_row("envelopes", envelope["id"])
        logger.info(f"Deleted envelope: {envelope['id']}")
        return deleted or envelope

    # -------------------------------------------------------------------------
    # Participants
    # -------------------------------------------------------------------------

    @staticmethod
    def list_participants(envelope_id: UUID | str, user_id: UUID | str) -> list[dict[str, Any]]:
        envelope = EnvelopeService.get_envelope(envelope_id, user_id)
        return SupabaseClient.fetch_rows(
            "envelope_participants", {"envelope_id": envelope["id"]}, order_by="created_at", desc=False
        )

    @staticmethod
    def add_participant(
        envelope_id: UUID | str,
        user_id: UUID | str,
        participant_user_id: UUID | str,
        role: str = ParticipantRole.CONTRIBUTOR.value,
        assigned_budget: Any = 0,
    ) -> dict[str, Any]:
        """
        Add a user to a shared envelope (owner or admin).

        Raises:
            InvalidInputError: Bad role, owner role, envelope full
            ResourceNotFoundError: If the user to add doesn't exist
            ConflictError: If the user already participates
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id, roles=MANAGER_ROLES)

        try:
            role_value = ParticipantRole(role).value
        except ValueError:
            raise InvalidInputError(f"Invalid role: {role}", code="INVALID_ROLE")
        if role_value == ParticipantRole.OWNER.value:
            raise InvalidInputError("An envelope has exactly one owner", code="INVALID_ROLE")

        if not SupabaseClient.fetch_row("users", participant_user_id):
            raise ResourceNotFoundError("User", normalize_uuid(participant_user_id))

        if EnvelopeService.get_participant(envelope["id"], participant_user_id):
            raise ConflictError("User already participates in this envelope", code="ALREADY_PARTICIPANT")

        participants = SupabaseClient.fetch_rows(
            "envelope_participants", {"envelope_id": envelope["id"]}, order_by=None
        )
        max_participants = envelope.get("max_participants")
        if max_participants and len(participants) >= max_participants:
            raise InvalidInputError(
                f"Envelope is full ({max_participants} participants)",
                code="ENVELOPE_FULL",
            )

        participant = SupabaseClient.insert_row("envelope_participants", {
            "envelope_id": envelope["id"],
            "user_id": normalize_uuid(participant_user_id),
            "role": role_value,
            "assigned_budget": EnvelopeService._budget(assigned_budget),
            "spent": 0,
        })

        if not envelope.get("is_shared"):
            SupabaseClient.update_row("envelopes", envelope["id"], {"is_shared": True})

        logger.info(f"Added participant {participant_user_id} ({role_value}) to envelope {envelope['id']}")
        return participant

    @staticmethod
    def remove_participant(
        envelope_id: UUID | str,
        user_id: UUID | str,
        participant_user_id: UUID | str,
    ) -> None:
        """
        Remove a participant (owner or admin). The owner can't be removed.
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id, roles=MANAGER_ROLES)

        participant = EnvelopeService.get_participant(envelope["id"], participant_user_id)
        if not participant:
            raise ResourceNotFoundError("Participant", normalize_uuid(participant_user_id))
        if participant["role"] == ParticipantRole.OWNER.value:
            raise InvalidInputError("The envelope owner can't be removed", code="OWNER_REMOVAL")

        SupabaseClient.delete_rows("envelope_participants", {"id": participant["id"]})
        logger.info(f"Removed participant {participant_user_id} from envelope {envelope['id']}")

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    @staticmethod
    def expense_rows(
        envelope_id: UUID | str,
        user_id: UUID | str | None = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> list[dict[str, Any]]:
        """Non-deleted expense transactions of an envelope, optionally for one user."""
        client = SupabaseClient.get_client()

        query = (
            client.table("transactions")
            .select("*")
            .eq("envelope_id", normalize_uuid(envelope_id))
            .eq("type", "expense")
            .is_("deleted_at", "null")
        )
        if user_id:
            query = query.eq("user_id", normalize_uuid(user_id))
        if date_from:
            query = query.gte("date", to_iso(date_from))
        if date_to:
            query = query.lte("date", to_iso(date_to))

        try:
            return query.execute().data or []
        except Exception as e:
            logger.error(f"Failed to fetch expenses for envelope {envelope_id}: {e}")
            raise

    @staticmethod
    def spending_summary(
        envelope_id: UUID | str,
        user_id: UUID | str,
        date_from: Any = None,
        date_to: Any = None,
    ) -> dict[str, Any]:
        """
        Budget vs. spend for an envelope.

        Returns:
            Dict with total_spent, budget, available, percent_used,
            transaction_count
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id)
        expenses = EnvelopeService.expense_rows(envelope["id"], date_from=date_from, date_to=date_to)

        spent = sum_amounts(expenses)
        budget = to_decimal(envelope["assigned_budget"])

        return {
            "envelope_id": envelope["id"],
            "total_spent": to_amount(spent),
            "budget": to_amount(budget),
            "available": to_amount(budget - spent),
            "percent_used": percent(spent, budget),
            "transaction_count": len(expenses),
        }
