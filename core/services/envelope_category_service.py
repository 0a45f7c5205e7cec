# =============================================================================
# core/services/envelope_category_service.py - Categories inside Envelopes
# =============================================================================
# Links the user's categories to envelopes so expenses can be broken down
# per category within a budget.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import ResourceNotFoundError
from core.services.envelope_service import MANAGER_ROLES, EnvelopeService
from lib.money import ZERO, to_amount, to_decimal
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id

logger = logging.getLogger(__name__)


class EnvelopeCategoryService:
    """
    Service for the envelope <-> category link table.
    """

    @staticmethod
    def link_categories(
        envelope_id: UUID | str,
        user_id: UUID | str,
        category_ids: list[UUID | str],
    ) -> list[dict[str, Any]]:
        """
        Link categories to an envelope (owner or admin).

        Categories already linked are skipped.

        Returns:
            The newly created link rows

        Raises:
            ResourceNotFoundError: If a category doesn't exist or isn't the user's
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id, roles=MANAGER_ROLES)

        wanted = list(dict.fromkeys(normalize_uuid(c) for c in category_ids))
        for category_id in wanted:
            category = SupabaseClient.fetch_row("categories", category_id)
            if not category or not same_id(category["user_id"], user_id):
                raise ResourceNotFoundError("Category", category_id)

        existing = {
            row["category_id"]
            for row in SupabaseClient.fetch_rows(
                "envelope_categories", {"envelope_id": envelope["id"]}, order_by=None
            )
        }

        created = []
        for category_id in wanted:
            if category_id in existing:
                continue
            created.append(SupabaseClient.insert_row("envelope_categories", {
                "envelope_id": envelope["id"],
                "category_id": category_id,
            }))

        logger.info(f"Linked {len(created)} categories to envelope {envelope['id']}")
        return created

    @staticmethod
    def unlink_category(
        envelope_id: UUID | str,
        user_id: UUID | str,
        category_id: UUID | str,
    ) -> None:
        envelope = EnvelopeService.get_envelope(envelope_id, user_id, roles=MANAGER_ROLES)

        deleted = SupabaseClient.delete_rows(
            "envelope_categories",
            {"envelope_id": envelope["id"], "category_id": category_id},
        )
        if not deleted:
            raise ResourceNotFoundError("Envelope category", normalize_uuid(category_id))

        logger.info(f"Unlinked category {category_id} from envelope {envelope['id']}")

    @staticmethod
    def list_categories_with_spend(
        envelope_id: UUID | str,
        user_id: UUID | str,
    ) -> list[dict[str, Any]]:
        """
        Categories linked to an envelope with how much was spent in each.

        Returns:
            List of category dicts with an extra `spent` field, highest spend first
        """
        envelope = EnvelopeService.get_envelope(envelope_id, user_id)

        links = SupabaseClient.fetch_rows("envelope_categories", {"envelope_id": envelope["id"]}, order_by=None)
        categories = SupabaseClient.fetch_rows_in("categories", "id", [l["category_id"] for l in links])

        spent_by_category: dict[str, Any] = {}
        for expense in EnvelopeService.expense_rows(envelope["id"]):
            key = expense.get("category_id")
            if key:
                spent_by_category[key] = spent_by_category.get(key, ZERO) + to_decimal(expense["amount"])

        result = [
            {**category, "spent": to_amount(spent_by_category.get(category["id"], ZERO))}
            for category in categories
        ]
        result.sort(key=lambda c: c["spent"], reverse=True)
        return result
