# =============================================================================
# core/services/category_service.py - Category & Subcategory Logic
# =============================================================================
# Categories belong to a user; subcategories belong to a category. Names
# are unique (case-insensitive) per user for categories and per category
# for subcategories, among rows that aren't soft-deleted.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import (
    ConflictError,
    InvalidInputError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id

logger = logging.getLogger(__name__)


CATEGORY_FIELDS = ("name", "color", "emoji")
SUBCATEGORY_FIELDS = ("name", "color", "emoji", "image_url")


def _clean_name(name: str | None, resource: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{resource} name is required", code="INVALID_NAME")
    return cleaned


def _name_taken(rows: list[dict[str, Any]], name: str, exclude_id: str | None = None) -> bool:
    return any(
        row["name"].strip().lower() == name.lower() and row["id"] != exclude_id
        for row in rows
    )


class CategoryService:
    """
    Service for categories and subcategories.
    """

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @staticmethod
    def create_category(
        user_id: UUID | str,
        name: str,
        color: str | None = None,
        emoji: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a category.

        Raises:
            InvalidInputError: Blank name
            ConflictError: If the user already has a category with this name
        """
        user_id_str = normalize_uuid(user_id)
        clean = _clean_name(name, "Category")

        if _name_taken(CategoryService.list_categories(user_id_str), clean):
            raise ConflictError(f"Category '{clean}' already exists", code="CATEGORY_EXISTS")

        category = SupabaseClient.insert_row("categories", {
            "name": clean,
            "color": color,
            "emoji": emoji,
            "user_id": user_id_str,
        })
        logger.info(f"Created category: {category['id']} for user: {user_id_str}")
        return category

    @staticmethod
    def list_categories(user_id: UUID | str) -> list[dict[str, Any]]:
        return SupabaseClient.fetch_rows("categories", {"user_id": user_id}, order_by="name", desc=False)

    @staticmethod
    def get_category(category_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            ResourceNotFoundError: If missing or deleted
            PermissionDeniedError: If it belongs to someone else
        """
        category = SupabaseClient.fetch_row("categories", category_id)
        if not category:
            raise ResourceNotFoundError("Category", normalize_uuid(category_id))
        if not same_id(category["user_id"], user_id):
            raise PermissionDeniedError("You don't have permission to access this category")
        return category

    @staticmethod
    def update_category(
        category_id: UUID | str,
        user_id: UUID | str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        category = CategoryService.get_category(category_id, user_id)

        update_data = {k: v for k, v in fields.items() if k in CATEGORY_FIELDS and v is not None}
        if "name" in update_data:
            update_data["name"] = _clean_name(update_data["name"], "Category")
            if _name_taken(CategoryService.list_categories(user_id), update_data["name"], category["id"]):
                raise ConflictError(f"Category '{update_data['name']}' already exists", code="CATEGORY_EXISTS")

        if not update_data:
            return category

        updated = SupabaseClient.update_row("categories", category["id"], update_data)
        logger.info(f"Updated category: {category['id']}")
        return updated or category

    @staticmethod
    def delete_category(category_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Soft delete a category with its subcategories and unlink it from envelopes.

        Past transactions keep their category_id.
        """
        category = CategoryService.get_category(category_id, user_id)

        for subcategory in SupabaseClient.fetch_rows("subcategories", {"category_id": category["id"]}, order_by=None):
            SupabaseClient.soft_delete_row("subcategories", subcategory["id"])

        links = SupabaseClient.fetch_rows("envelope_categories", {"category_id": category["id"]}, order_by=None)
        if links:
            SupabaseClient.delete_rows("envelope_categories", {"category_id": category["id"]})

        deleted = SupabaseClient.soft_delete_row("categories", category["id"])
        logger.info(f"Deleted category: {category['id']}")
        return deleted or category

    # -------------------------------------------------------------------------
    # Subcategories
    # -------------------------------------------------------------------------

    @staticmethod
    def create_subcategory(
        user_id: UUID | str,
        category_id: UUID | str,
        name: str,
        color: str | None = None,
        emoji: str | None = None,
        image_url: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a subcategory under one of the user's categories.

        Raises:
            ConflictError: If the category already has a subcategory with this name
        """
        category = CategoryService.get_category(category_id, user_id)
        clean = _clean_name(name, "Subcategory")

        siblings = SupabaseClient.fetch_rows("subcategories", {"category_id": category["id"]}, order_by=None)
        if _name_taken(siblings, clean):
            raise ConflictError(f"Subcategory '{clean}' already exists", code="SUBCATEGORY_EXISTS")

        subcategory = SupabaseClient.insert_row("subcategories", {
            "name": clean,
            "category_id": category["id"],
            "color": color,
            "emoji": emoji,
            "image_url": image_url,
            "user_id": normalize_uuid(user_id),
        })
        logger.info(f"Created subcategory: {subcategory['id']} in category {category['id']}")
        return subcategory

    @staticmethod
    def list_subcategories(category_id: UUID | str, user_id: UUID | str) -> list[dict[str, Any]]:
        category = CategoryService.get_category(category_id, user_id)
        return SupabaseClient.fetch_rows(
            "subcategories", {"category_id": category["id"]}, order_by="name", desc=False
        )

    @staticmethod
    def list_user_subcategories(user_id: UUID | str) -> list[dict[str, Any]]:
        return SupabaseClient.fetch_rows("subcategories", {"user_id": user_id}, order_by="name", desc=False)

    @staticmethod
    def get_subcategory(subcategory_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        subcategory = SupabaseClient.fetch_row("subcategories", subcategory_id)
        if not subcategory:
            raise ResourceNotFoundError("Subcategory", normalize_uuid(subcategory_id))
        if not same_id(subcategory["user_id"], user_id):
            raise PermissionDeniedError("You don't have permission to access this subcategory")
        return subcategory

    @staticmethod
    def update_subcategory(
        subcategory_id: UUID | str,
        user_id: UUID | str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        subcategory = CategoryService.get_subcategory(subcategory_id, user_id)

        update_data = {k: v for k, v in fields.items() if k in SUBCATEGORY_FIELDS and v is not None}
        if "name" in update_data:
            update_data["name"] = _clean_name(update_data["name"], "Subcategory")
            siblings = SupabaseClient.fetch_rows(
                "subcategories", {"category_id": subcategory["category_id"]}, order_by=None
            )
            if _name_taken(siblings, update_data["name"], subcategory["id"]):
                raise ConflictError(
                    f"Subcategory '{update_data['name']}' already exists", code="SUBCATEGORY_EXISTS"
                )

        if not update_data:
            return subcategory

        updated = SupabaseClient.update_row("subcategories", subcategory["id"], update_data)
        logger.info(f"Updated subcategory: {subcategory['id']}")
        return updated or subcategory

    @staticmethod
    def delete_subcategory(subcategory_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        subcategory = CategoryService.get_subcategory(subcategory_id, user_id)
        deleted = SupabaseClient.soft_delete_row("subcategories", subcategory["id"])
        logger.info(f"Deleted subcategory: {subcategory['id']}")
        return deleted or subcategory
