# =============================================================================
# core/services/transaction_service.py - Transaction Business Logic
# =============================================================================
# Handles recording, listing, editing and deleting transactions, and keeps
# wallet balances and envelope spend in step with them.
#
# Overspending an envelope or taking a wallet below zero never blocks a
# write. Those conditions are detected after the write and returned as
# warnings next to the stored transaction.
# =============================================================================

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from app.exceptions import (
    InvalidInputError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from core.models.transaction import (
    BALANCE_EFFECT,
    OperationWarning,
    TransactionType,
    WarningType,
)
from core.services.config_service import ConfigService
from core.services.envelope_service import EnvelopeService
from core.services.wallet_service import WalletService, negative_wallet_warning
from lib.money import ZERO, percent, sum_amounts, to_amount, to_decimal
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, to_iso, utc_now_iso

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = ("amount", "description", "date", "category_id", "subcategory_id")


class TransactionService:
    """
    Service for transaction operations.
    """

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _transaction_type(value: str) -> TransactionType:
        try:
            return TransactionType(value)
        except ValueError:
            raise InvalidInputError(
                f"Invalid transaction type: {value}",
                code="INVALID_TRANSACTION_TYPE",
                details={"allowed": [t.value for t in TransactionType]},
            )

    @staticmethod
    def _positive_amount(amount: Any) -> Decimal:
        value = to_decimal(amount)
        if value <= 0:
            raise InvalidInputError("Amount must be greater than zero", code="INVALID_AMOUNT")
        return value

    @staticmethod
    def _check_category(category_id: UUID | str | None, user_id: UUID | str) -> None:
        if not category_id:
            return
        category = SupabaseClient.fetch_row("categories", category_id)
        if not category or not same_id(category["user_id"], user_id):
            raise ResourceNotFoundError("Category", normalize_uuid(category_id))

    @staticmethod
    def _check_subcategory(subcategory_id: UUID | str | None, user_id: UUID | str) -> None:
        if not subcategory_id:
            return
        subcategory = SupabaseClient.fetch_row("subcategories", subcategory_id)
        if not subcategory or not same_id(subcategory["user_id"], user_id):
            raise ResourceNotFoundError("Subcategory", normalize_uuid(subcategory_id))

    @staticmethod
    def _apply_effect(transaction: dict[str, Any], sign: int) -> list[dict[str, Any]]:
        """
        Apply (sign=1) or revert (sign=-1) a transaction's effect.

        Moves the wallet balance according to the transaction type and, for
        expenses in an envelope, the envelope's and participant's spend.

        Returns:
            Warnings produced by the new state (only when applying)
        """
        tx_type = TransactionType(transaction["type"])
        amount = to_decimal(transaction["amount"])
        warnings: list[dict[str, Any]] = []

        delta = amount * BALANCE_EFFECT[tx_type] * sign
        if delta != 0:
            wallet = SupabaseClient.fetch_row("wallets", transaction["wallet_id"])
            if wallet:
                new_balance = to_decimal(wallet["real_balance"]) + delta
                WalletService.apply_balance_delta(wallet, delta)
                if sign > 0 and new_balance < 0:
                    warnings.append(negative_wallet_warning(wallet, new_balance))

        if tx_type == TransactionType.EXPENSE and transaction.get("envelope_id"):
            warning = TransactionService._apply_envelope_spend(transaction, amount * sign)
            if warning and sign > 0:
                warnings.append(warning)

        return warnings

    @staticmethod
    def _apply_envelope_spend(transaction: dict[str, Any], delta: Decimal) -> dict[str, Any] | None:
        envelope = SupabaseClient.fetch_row("envelopes", transaction["envelope_id"])
        if not envelope:
            return None

        spent = max(to_decimal(envelope.get("spent")) + delta, ZERO)
        SupabaseClient.update_row("envelopes", envelope["id"], {"spent": to_amount(spent)})

        participant = EnvelopeService.get_participant(envelope["id"], transaction["user_id"])
        if participant:
            participant_spent = max(to_decimal(participant.get("spent")) + delta, ZERO)
            SupabaseClient.update_row("envelope_participants", participant["id"], {
                "spent": to_amount(participant_spent),
            })

        budget = to_decimal(envelope["assigned_budget"])
        if spent <= budget:
            return None

        percent_over = percent(spent - budget, budget) if budget > 0 else 100.0
        return OperationWarning(
            type=WarningType.OVERSPEND_ENVELOPE,
            message=f"Envelope '{envelope['name']}' is over budget",
            details={
                "envelope_id": envelope["id"],
                "envelope_name": envelope["name"],
                "assigned_budget": to_amount(budget),
                "spent": to_amount(spent),
                "percent_over": percent_over,
            },
        ).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @staticmethod
    def create_transaction(
        user_id: UUID | str,
        amount: Any,
        currency_id: str,
        wallet_id: UUID | str,
        transaction_type: str,
        date: Any,
        description: str | None = None,
        envelope_id: UUID | str | None = None,
        category_id: UUID | str | None = None,
        subcategory_id: UUID | str | None = None,
        target_wallet_id: UUID | str | None = None,
    ) -> dict[str, Any]:
        """
        Record a transaction and apply its effect.

        Args:
            user_id: The user recording it
            amount: Positive amount
            currency_id: Currency code
            wallet_id: Wallet the money moves through (must be owned)
            transaction_type: One of TransactionType
            date: When it happened
            envelope_id: Envelope the expense belongs to (user must participate)

        Returns:
            Dict with transaction and warnings (OVERSPEND_ENVELOPE, NEGATIVE_WALLET)

        Raises:
            InvalidInputError: Bad amount, type or currency
            ResourceNotFoundError / PermissionDeniedError: Missing or foreign references
        """
        value = TransactionService._positive_amount(amount)
        tx_type = TransactionService._transaction_type(transaction_type)
        if not date:
            raise InvalidInputError("Date is required", code="INVALID_DATE")

        wallet = WalletService.get_wallet(wallet_id, user_id)
        ConfigService.require_currency(currency_id)

        if envelope_id:
            EnvelopeService.get_envelope(envelope_id, user_id)
        TransactionService._check_category(category_id, user_id)
        TransactionService._check_subcategory(subcategory_id, user_id)
        if target_wallet_id:
            WalletService.get_wallet(target_wallet_id, user_id)

        transaction = SupabaseClient.insert_row("transactions", {
            "amount": to_amount(value),
            "currency_id": currency_id,
            "wallet_id": wallet["id"],
            "type": tx_type.value,
            "user_id": normalize_uuid(user_id),
            "description": description or "",
            "date": to_iso(date),
            "envelope_id": normalize_uuid(envelope_id) if envelope_id else None,
            "category_id": normalize_uuid(category_id) if category_id else None,
            "subcategory_id": normalize_uuid(subcategory_id) if subcategory_id else None,
            "target_wallet_id": normalize_uuid(target_wallet_id) if target_wallet_id else None,
            "version": 1,
        })

        warnings = TransactionService._apply_effect(transaction, sign=1)

        logger.info(f"Created {tx_type.value} transaction: {transaction['id']} ({len(warnings)} warnings)")
        return {"transaction": transaction, "warnings": warnings}

    @staticmethod
    def list_transactions(
        user_id: UUID | str,
        transaction_type: str | None = None,
        wallet_id: UUID | str | None = None,
        envelope_id: UUID | str | None = None,
        category_id: UUID | str | None = None,
        date_from: Any = None,
        date_to: Any = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        List the user's transactions, newest first.

        All given filters apply together.

        Returns:
            Tuple of (transactions list, total count)
        """
        client = SupabaseClient.get_client()

        query = (
            client.table("transactions")
            .select("*", count="exact")
            .eq("user_id", normalize_uuid(user_id))
            .is_("deleted_at", "null")
        )
        if transaction_type:
            query = query.eq("type", TransactionService._transaction_type(transaction_type).value)
        if wallet_id:
            query = query.eq("wallet_id", normalize_uuid(wallet_id))
        if envelope_id:
            query = query.eq("envelope_id", normalize_uuid(envelope_id))
        if category_id:
            query = query.eq("category_id", normalize_uuid(category_id))
        if date_from:
            query = query.gte("date", to_iso(date_from))
        if date_to:
            query = query.lte("date", to_iso(date_to))

        query = query.order("date", desc=True).range(offset, offset + limit - 1)

        try:
            response = query.execute()
            return response.data or [], response.count or 0

        except Exception as e:
            logger.error(f"Failed to list transactions: {e}")
            raise

    @staticmethod
    def get_transaction(transaction_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            ResourceNotFoundError: If missing or deleted
            PermissionDeniedError: If it belongs to someone else
        """
        transaction = SupabaseClient.fetch_row("transactions", transaction_id)
        if not transaction:
            raise ResourceNotFoundError("Transaction", normalize_uuid(transaction_id))
        if not same_id(transaction["user_id"], user_id):
            raise PermissionDeniedError("You don't have permission to access this transaction")
        return transaction

    @staticmethod
    def update_transaction(
        transaction_id: UUID | str,
        user_id: UUID | str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Edit a transaction.

        A new amount reverts the old effect on wallet and envelope and
        applies the new one.

        Returns:
            Dict with transaction and warnings
        """
        transaction = TransactionService.get_transaction(transaction_id, user_id)

        update_data = {
            key: value for key, value in fields.items()
            if key in UPDATABLE_FIELDS and value is not None
        }
        if "category_id" in update_data:
            TransactionService._check_category(update_data["category_id"], user_id)
            update_data["category_id"] = normalize_uuid(update_data["category_id"])
        if "subcategory_id" in update_data:
            TransactionService._check_subcategory(update_data["subcategory_id"], user_id)
            update_data["subcategory_id"] = normalize_uuid(update_data["subcategory_id"])
        if "date" in update_data:
            update_data["date"] = to_iso(update_data["date"])

        amount_changed = False
        if "amount" in update_data:
            new_amount = TransactionService._positive_amount(update_data["amount"])
            update_data["amount"] = to_amount(new_amount)
            amount_changed = new_amount != to_decimal(transaction["amount"])

        if not update_data:
            return {"transaction": transaction, "warnings": []}

        warnings: list[dict[str, Any]] = []
        if amount_changed:
            TransactionService._apply_effect(transaction, sign=-1)

        updated = SupabaseClient.update_row("transactions", transaction["id"], update_data) or {
            **transaction, **update_data
        }

        if amount_changed:
            warnings = TransactionService._apply_effect(updated, sign=1)

        logger.info(f"Updated transaction: {transaction['id']}")
        return {"transaction": updated, "warnings": warnings}

    @staticmethod
    def delete_transaction(transaction_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """Soft delete a transaction and revert its effect."""
        transaction = TransactionService.get_transaction(transaction_id, user_id)

        TransactionService._apply_effect(transaction, sign=-1)
        deleted = SupabaseClient.soft_delete_row("transactions", transaction["id"])

        logger.info(f"Deleted transaction: {transaction['id']}")
        return deleted or {**transaction, "deleted_at": utc_now_iso()}

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    @staticmethod
    def totals(
        user_id: UUID | str,
        date_from: Any = None,
        date_to: Any = None,
    ) -> dict[str, float]:
        """
        Income and expense totals for the user.

        Returns:
            Dict with total_income, total_expenses, balance
        """
        client = SupabaseClient.get_client()

        query = (
            client.table("transactions")
            .select("amount, type")
            .eq("user_id", normalize_uuid(user_id))
            .in_("type", [TransactionType.INCOME.value, TransactionType.EXPENSE.value])
            .is_("deleted_at", "null")
        )
        if date_from:
            query = query.gte("date", to_iso(date_from))
        if date_to:
            query = query.lte("date", to_iso(date_to))

        try:
            rows = query.execute().data or []
        except Exception as e:
            logger.error(f"Failed to compute totals: {e}")
            raise

        income = sum_amounts(r for r in rows if r["type"] == TransactionType.INCOME.value)
        expenses = sum_amounts(r for r in rows if r["type"] == TransactionType.EXPENSE.value)

        return {
            "total_income": to_amount(income),
            "total_expenses": to_amount(expenses),
            "balance": to_amount(income - expenses),
        }
