# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides the row-level helpers every service relies on:
# - Fetching a single row by id (soft-deleted rows hidden)
# - Fetching rows matching equality filters
# - Inserting, updating and soft-deleting rows
#
# Tables with a `deleted_at` column are listed in SOFT_DELETE_TABLES; every
# read through this wrapper filters `deleted_at IS NULL` on those tables.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   wallet = SupabaseClient.fetch_row("wallets", wallet_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import utc_now_iso

# Set up logging for this module
logger = logging.getLogger(__name__)


# Tables that use soft delete instead of hard deletion
SOFT_DELETE_TABLES = frozenset({
    "wallets",
    "envelopes",
    "categories",
    "subcategories",
    "transactions",
})


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        wallet = SupabaseClient.fetch_row("wallets", "550e8400-...")

        envelopes = SupabaseClient.fetch_rows(
            "envelopes",
            filters={"user_id": user_id},
        )
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Ownership checks therefore happen in the service layer.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @classmethod
    def _normalize_filters(cls, filters: dict[str, Any] | None) -> dict[str, Any]:
        return {
            key: cls._normalize_uuid(value) if isinstance(value, UUID) else value
            for key, value in (filters or {}).items()
        }

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_row(
        cls,
        table: str,
        row_id: str | UUID,
        id_column: str = "id",
    ) -> dict[str, Any] | None:
        """
        Fetch a single row by primary key.

        Soft-deleted rows are treated as missing.

        Args:
            table: Table name
            row_id: Value of the key column
            id_column: Key column name (user_config is keyed by user_id)

        Returns:
            Row dict, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            query = client.table(table).select("*").eq(id_column, row_id_str)
            if table in SOFT_DELETE_TABLES:
                query = query.is_("deleted_at", "null")

            response = query.limit(1).execute()
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {table} row: {e}",
                code="FETCH_ROW_FAILED",
                suggestion=f"Check that the {table} table is accessible",
                details={"table": table, "id": row_id_str}
            )

    @classmethod
    def fetch_rows(
        cls,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = "created_at",
        desc: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch rows matching equality filters.

        Args:
            table: Table name
            filters: Column -> value equality filters (AND-combined)
            order_by: Column to sort by (None keeps database order)
            desc: Sort descending
            limit: Maximum number of rows

        Returns:
            List of row dicts (possibly empty)

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            query = client.table(table).select("*")
            for column, value in cls._normalize_filters(filters).items():
                query = query.eq(column, value)
            if table in SOFT_DELETE_TABLES:
                query = query.is_("deleted_at", "null")
            if order_by:
                query = query.order(order_by, desc=desc)
            if limit:
                query = query.limit(limit)

            response = query.execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {table} rows: {e}",
                code="FETCH_ROWS_FAILED",
                suggestion=f"Check that the {table} table is accessible",
                details={"table": table, "filters": cls._normalize_filters(filters)}
            )

    @classmethod
    def fetch_rows_in(
        cls,
        table: str,
        column: str,
        values: list[str],
    ) -> list[dict[str, Any]]:
        """Fetch rows whose `column` is one of `values`."""
        if not values:
            return []

        client = cls.get_client()

        try:
            query = client.table(table).select("*").in_(column, [cls._normalize_uuid(v) for v in values])
            if table in SOFT_DELETE_TABLES:
                query = query.is_("deleted_at", "null")
            response = query.order("created_at", desc=True).execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {table} rows: {e}",
                code="FETCH_ROWS_FAILED",
                details={"table": table, "column": column}
            )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a row and return it as stored.

        Raises:
            SupabaseClientError: If the insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = client.table(table).insert(cls._normalize_filters(data)).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                suggestion="Check required columns and foreign keys",
                details={"table": table}
            )

        if not response.data:
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_EMPTY",
                details={"table": table}
            )

        return response.data[0]

    @classmethod
    def update_row(
        cls,
        table: str,
        row_id: str | UUID,
        data: dict[str, Any],
        id_column: str = "id",
    ) -> dict[str, Any] | None:
        """
        Update a row by primary key and return the updated row.

        `updated_at` is stamped automatically on every update.

        Returns:
            Updated row dict, or None if no row matched
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)
        payload = {**cls._normalize_filters(data), "updated_at": utc_now_iso()}

        try:
            response = (
                client.table(table)
                .update(payload)
                .eq(id_column, row_id_str)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table} row: {e}",
                code="UPDATE_FAILED",
                details={"table": table, "id": row_id_str}
            )

    @classmethod
    def soft_delete_row(cls, table: str, row_id: str | UUID) -> dict[str, Any] | None:
        """Stamp `deleted_at` on a row so reads stop returning it."""
        if table not in SOFT_DELETE_TABLES:
            raise SupabaseClientError(
                message=f"Table {table} doesn't support soft delete",
                code="SOFT_DELETE_UNSUPPORTED",
                details={"table": table}
            )
        return cls.update_row(table, row_id, {"deleted_at": utc_now_iso()})

    @classmethod
    def delete_rows(cls, table: str, filters: dict[str, Any]) -> int:
        """
        Hard delete rows matching equality filters.

        Only used for link tables (envelope_categories, linked_users,
        envelope_participants) which carry no history.

        Returns:
            Number of deleted rows
        """
        if not filters:
            raise SupabaseClientError(
                message="Refusing to delete without filters",
                code="DELETE_WITHOUT_FILTERS",
                details={"table": table}
            )

        client = cls.get_client()

        try:
            query = client.table(table).delete()
            for column, value in cls._normalize_filters(filters).items():
                query = query.eq(column, value)
            response = query.execute()
            return len(response.data or [])

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete from {table}: {e}",
                code="DELETE_FAILED",
                details={"table": table}
            )
