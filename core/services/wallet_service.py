# =============================================================================
# core/services/wallet_service.py - Wallet Business Logic
# =============================================================================
# Handles wallet CRUD and every operation that moves real money in or out
# of a wallet: manual adjustments, deposits/withdrawals and transfers.
#
# Each money operation is a plain sequence of writes (balance update,
# transaction row, movement row). A failure halfway leaves the earlier
# writes in place; there is no rollback.
# =============================================================================

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from app.exceptions import (
    InvalidInputError,
    PermissionDeniedError,
    WalletNotFoundError,
)
from core.models.transaction import OperationWarning, TransactionType, WarningType
from core.models.wallet import UNDECLARED_WALLET, MovementType, WalletType
from core.services.config_service import ConfigService
from core.services.subscription_service import SubscriptionService
from lib.money import ZERO, to_amount, to_decimal
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, utc_now_iso

logger = logging.getLogger(__name__)


# Fields a client may change with PUT /wallets/{id}
UPDATABLE_FIELDS = ("name", "type", "color", "emoji", "is_shared", "interest_rate")


def negative_wallet_warning(wallet: dict[str, Any], balance: Decimal) -> dict[str, Any]:
    """Warning returned when a write leaves a wallet below zero."""
    return OperationWarning(
        type=WarningType.NEGATIVE_WALLET,
        message=f"Wallet '{wallet['name']}' has a negative balance",
        details={
            "wallet_id": wallet["id"],
            "wallet_name": wallet["name"],
            "real_balance": to_amount(balance),
        },
    ).model_dump(mode="json")


class WalletService:
    """
    Service for wallet operations.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _clean_name(name: str | None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidInputError("Wallet name is required", code="INVALID_NAME")
        return cleaned

    @staticmethod
    def _wallet_type(value: str) -> str:
        try:
            return WalletType(value).value
        except ValueError:
            raise InvalidInputError(
                f"Invalid wallet type: {value}",
                code="INVALID_WALLET_TYPE",
                details={"allowed": [t.value for t in WalletType]},
            )

    @staticmethod
    def _positive_amount(amount: Any, field: str = "amount") -> Decimal:
        value = to_decimal(amount)
        if value <= 0:
            raise InvalidInputError(
                f"{field} must be greater than zero",
                code="INVALID_AMOUNT",
                details={field: to_amount(value)},
            )
        return value

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @staticmethod
    def create_wallet(
        user_id: UUID | str,
        name: str,
        wallet_type: str,
        currency_id: str | None = None,
        initial_balance: Any = 0,
        color: str | None = None,
        emoji: str | None = None,
        is_shared: bool = False,
        interest_rate: Any = None,
    ) -> dict[str, Any]:
        """
        Create a wallet.

        A non-zero opening balance is recorded as a deposit transaction so
        totals and history add up from day one.

        Args:
            user_id: Owner of the wallet
            name: Display name (required, trimmed)
            wallet_type: One of WalletType
            currency_id: Currency code; defaults to the user's main currency
            initial_balance: Opening balance, must not be negative

        Returns:
            Created wallet dict

        Raises:
            InvalidInputError: Blank name, bad type, negative balance, bad currency
            PlanLimitReachedError: If the plan's wallet limit is reached
        """
        user_id_str = normalize_uuid(user_id)
        clean_name = WalletService._clean_name(name)
        type_value = WalletService._wallet_type(wallet_type)

        balance = to_decimal(initial_balance)
        if balance < 0:
            raise InvalidInputError(
                "Initial balance can't be negative",
                code="NEGATIVE_INITIAL_BALANCE",
                suggestion="Create the wallet with 0 and record the debt as an expense",
                details={"initial_balance": to_amount(balance)},
            )

        existing = SupabaseClient.fetch_rows("wallets", {"user_id": user_id_str}, order_by=None)
        SubscriptionService.check_resource_limit(user_id_str, "wallets", len(existing))

        currency = ConfigService.resolve_currency(user_id_str, currency_id)

        wallet = SupabaseClient.insert_row("wallets", {
            "name": clean_name,
            "type": type_value,
            "currency_id": currency,
            "real_balance": to_amount(balance),
            "projected_balance": to_amount(balance),
            "color": color,
            "emoji": emoji,
            "is_shared": is_shared,
            "interest_rate": to_amount(to_decimal(interest_rate)) if interest_rate is not None else None,
            "user_id": user_id_str,
        })

        if balance > 0:
            SupabaseClient.insert_row("transactions", {
                "amount": to_amount(balance),
                "currency_id": currency,
                "wallet_id": wallet["id"],
                "type": TransactionType.DEPOSIT.value,
                "user_id": user_id_str,
                "description": "Initial balance",
                "date": utc_now_iso(),
                "version": 1,
            })

        WalletService.record_movement(
            wallet,
            MovementType.CREATION,
            amount=balance,
            real_balance_after=balance,
            description="Wallet created",
        )

        logger.info(f"Created wallet: {wallet['id']} for user: {user_id_str}")
        return wallet

    @staticmethod
    def list_wallets(user_id: UUID | str) -> list[dict[str, Any]]:
        """Non-deleted wallets of the user, newest first."""
        return SupabaseClient.fetch_rows("wallets", {"user_id": user_id})

    @staticmethod
    def get_wallet(wallet_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Get a wallet the user owns.

        Raises:
            WalletNotFoundError: If the wallet doesn't exist or was deleted
            PermissionDeniedError: If it belongs to someone else
        """
        wallet = SupabaseClient.fetch_row("wallets", wallet_id)
        if not wallet:
            raise WalletNotFoundError(normalize_uuid(wallet_id))

        if not same_id(wallet["user_id"], user_id):
            raise PermissionDeniedError(
                "You don't have permission to use this wallet",
                details={"wallet_id": normalize_uuid(wallet_id)},
            )

        return wallet

    @staticmethod
    def update_wallet(
        wallet_id: UUID | str,
        user_id: UUID | str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Update editable wallet fields. Balances are not editable here.
        """
        wallet = WalletService.get_wallet(wallet_id, user_id)

        update_data = {
            key: value for key, value in fields.items()
            if key in UPDATABLE_FIELDS and value is not None
        }
        if "name" in update_data:
            update_data["name"] = WalletService._clean_name(update_data["name"])
        if "type" in update_data:
            update_data["type"] = WalletService._wallet_type(update_data["type"])
        if "interest_rate" in update_data:
            update_data["interest_rate"] = to_amount(to_decimal(update_data["interest_rate"]))

        if not update_data:
            return wallet

        updated = SupabaseClient.update_row("wallets", wallet["id"], update_data)
        logger.info(f"Updated wallet: {wallet['id']}")
        return updated or wallet

    @staticmethod
    def delete_wallet(wallet_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Soft delete a wallet.

        Raises:
            InvalidInputError: If the wallet still holds money
        """
        wallet = WalletService.get_wallet(wallet_id, user_id)

        balance = to_decimal(wallet["real_balance"])
        if balance != 0:
            raise InvalidInputError(
                "Wallet balance must be zero before deleting",
                code="WALLET_NOT_EMPTY",
                suggestion="Transfer or adjust the remaining balance first",
                details={"real_balance": to_amount(balance)},
            )

        deleted = SupabaseClient.soft_delete_row("wallets", wallet["id"])
        logger.info(f"Deleted wallet: {wallet['id']}")
        return deleted or wallet

    # -------------------------------------------------------------------------
    # Balance helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def apply_balance_delta(
        wallet: dict[str, Any],
        real_delta: Decimal,
        projected_delta: Decimal | None = None,
    ) -> dict[str, Any]:
        """
        Shift a wallet's balances by the given deltas and persist them.

        `projected_delta` defaults to `real_delta`. Budget reservations pass
        a zero real delta to touch only the projected balance.

        Returns:
            Updated wallet dict
        """
        if projected_delta is None:
            projected_delta = real_delta

        new_real = to_decimal(wallet["real_balance"]) + real_delta
        new_projected = to_decimal(wallet["projected_balance"]) + projected_delta

        updated = SupabaseClient.update_row("wallets", wallet["id"], {
            "real_balance": to_amount(new_real),
            "projected_balance": to_amount(new_projected),
        })
        return updated or {**wallet, "real_balance": to_amount(new_real), "projected_balance": to_amount(new_projected)}

    @staticmethod
    def record_movement(
        wallet: dict[str, Any],
        movement_type: MovementType,
        amount: Decimal,
        real_balance_after: Decimal | float,
        description: str | None = None,
        source_wallet_id: str | None = None,
        target_wallet_id: str | None = None,
    ) -> dict[str, Any]:
        """Append an entry to the wallet's movement history."""
        return SupabaseClient.insert_row("wallet_movements", {
            "wallet_id": wallet["id"],
            "user_id": wallet["user_id"],
            "type": movement_type.value,
            "amount": to_amount(to_decimal(amount)),
            "currency_id": wallet["currency_id"],
            "source_wallet_id": source_wallet_id,
            "target_wallet_id": target_wallet_id,
            "real_balance_after": to_amount(to_decimal(real_balance_after)),
            "description": description,
            "date": utc_now_iso(),
        })

    # -------------------------------------------------------------------------
    # Money operations
    # -------------------------------------------------------------------------

    @staticmethod
    def adjust_balance(
        wallet_id: UUID | str,
        user_id: UUID | str,
        delta: Any,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Correct a wallet balance by a signed delta.

        Real and projected balances both become previous + delta, then an
        audit transaction is written (income for positive deltas, expense
        for negative ones).

        Raises:
            InvalidInputError: If delta is zero
        """
        wallet = WalletService.get_wallet(wallet_id, user_id)

        change = to_decimal(delta)
        if change == 0:
            raise InvalidInputError("Adjustment must not be zero", code="INVALID_AMOUNT")

        previous = to_decimal(wallet["real_balance"])
        updated = WalletService.apply_balance_delta(wallet, change)
        new_balance = previous + change

        transaction = SupabaseClient.insert_row("transactions", {
            "amount": to_amount(abs(change)),
            "currency_id": wallet["currency_id"],
            "wallet_id": wallet["id"],
            "type": (TransactionType.INCOME if change > 0 else TransactionType.EXPENSE).value,
            "user_id": wallet["user_id"],
            "description": description or "Balance adjustment",
            "date": utc_now_iso(),
            "version": 1,
        })

        WalletService.record_movement(
            wallet,
            MovementType.ADJUSTMENT,
            amount=change,
            real_balance_after=new_balance,
            description=description or "Balance adjustment",
        )

        logger.info(f"Adjusted wallet {wallet['id']}: {to_amount(previous)} -> {to_amount(new_balance)}")
        return {
            "wallet": updated,
            "transaction": transaction,
            "previous_balance": to_amount(previous),
            "new_balance": to_amount(new_balance),
            "delta": to_amount(change),
        }

    @staticmethod
    def deposit_or_withdraw(
        wallet_id: UUID | str,
        user_id: UUID | str,
        amount: Any,
        kind: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Record money entering or leaving a wallet.

        A withdrawal may take the wallet below zero; the caller gets a
        NEGATIVE_WALLET warning instead of an error.

        Args:
            kind: "deposit" or "withdrawal"

        Returns:
            Dict with wallet, movement and warnings
        """
        if kind not in (MovementType.DEPOSIT.value, MovementType.WITHDRAWAL.value):
            raise InvalidInputError(
                f"Invalid movement kind: {kind}",
                code="INVALID_MOVEMENT",
                details={"allowed": [MovementType.DEPOSIT.value, MovementType.WITHDRAWAL.value]},
            )

        value = WalletService._positive_amount(amount)
        wallet = WalletService.get_wallet(wallet_id, user_id)

        delta = value if kind == MovementType.DEPOSIT.value else -value
        new_balance = to_decimal(wallet["real_balance"]) + delta
        updated = WalletService.apply_balance_delta(wallet, delta)

        movement = WalletService.record_movement(
            wallet,
            MovementType(kind),
            amount=value,
            real_balance_after=new_balance,
            description=description,
        )

        warnings = []
        if new_balance < 0:
            warnings.append(negative_wallet_warning(wallet, new_balance))

        logger.info(f"{kind.capitalize()} of {to_amount(value)} on wallet {wallet['id']}")
        return {"wallet": updated, "movement": movement, "warnings": warnings}

    @staticmethod
    def transfer(
        user_id: UUID | str,
        source_wallet_id: str,
        target_wallet_id: str,
        amount: Any,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Move money between wallets.

        Either side may be UNDECLARED (money from or to outside the app).
        The source gets a transfer transaction and the target a deposit
        transaction; both get a movement entry.

        Raises:
            InvalidInputError: Bad amount, same wallet, both undeclared, currency mismatch
            WalletNotFoundError / PermissionDeniedError: For a real wallet side
        """
        value = WalletService._positive_amount(amount)

        source_key = normalize_uuid(source_wallet_id)
        target_key = normalize_uuid(target_wallet_id)
        if source_key == UNDECLARED_WALLET and target_key == UNDECLARED_WALLET:
            raise InvalidInputError("At least one side of a transfer must be a wallet", code="INVALID_TRANSFER")
        if source_key == target_key:
            raise InvalidInputError("Source and target wallets must be different", code="SAME_WALLET")

        source = None if source_key == UNDECLARED_WALLET else WalletService.get_wallet(source_key, user_id)
        target = None if target_key == UNDECLARED_WALLET else WalletService.get_wallet(target_key, user_id)

        if source and target and source["currency_id"] != target["currency_id"]:
            raise InvalidInputError(
                "Wallets must use the same currency",
                code="CURRENCY_MISMATCH",
                details={"source_currency": source["currency_id"], "target_currency": target["currency_id"]},
            )

        text = description or "Transfer"
        user_id_str = normalize_uuid(user_id)
        transactions = []
        warnings = []
        result: dict[str, Any] = {"source_wallet": None, "target_wallet": None}

        if source:
            new_balance = to_decimal(source["real_balance"]) - value
            result["source_wallet"] = WalletService.apply_balance_delta(source, -value)
            transactions.append(SupabaseClient.insert_row("transactions", {
                "amount": to_amount(value),
                "currency_id": source["currency_id"],
                "wallet_id": source["id"],
                "target_wallet_id": target["id"] if target else None,
                "type": TransactionType.TRANSFER.value,
                "user_id": user_id_str,
                "description": text,
                "date": utc_now_iso(),
                "version": 1,
            }))
            WalletService.record_movement(
                source,
                MovementType.TRANSFER,
                amount=-value,
                real_balance_after=new_balance,
                description=text,
                source_wallet_id=source["id"],
                target_wallet_id=target["id"] if target else None,
            )
            if new_balance < 0:
                warnings.append(negative_wallet_warning(source, new_balance))

        if target:
            new_balance = to_decimal(target["real_balance"]) + value
            result["target_wallet"] = WalletService.apply_balance_delta(target, value)
            transactions.append(SupabaseClient.insert_row("transactions", {
                "amount": to_amount(value),
                "currency_id": target["currency_id"],
                "wallet_id": target["id"],
                "type": TransactionType.DEPOSIT.value,
                "user_id": user_id_str,
                "description": text,
                "date": utc_now_iso(),
                "version": 1,
            }))
            WalletService.record_movement(
                target,
                MovementType.TRANSFER,
                amount=value,
                real_balance_after=new_balance,
                description=text,
                source_wallet_id=source["id"] if source else None,
                target_wallet_id=target["id"],
            )

        logger.info(f"Transferred {to_amount(value)} from {source_key} to {target_key}")
        return {**result, "amount": to_amount(value), "transactions": transactions, "warnings": warnings}

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    @staticmethod
    def consolidated_balance(user_id: UUID | str) -> dict[str, Any]:
        """
        Sum balances across wallets, grouped by currency.

        Returns:
            Dict with by_currency list and total wallet_count
        """
        wallets = WalletService.list_wallets(user_id)

        totals: dict[str, dict[str, Any]] = {}
        for wallet in wallets:
            entry = totals.setdefault(wallet["currency_id"], {
                "real": ZERO,
                "projected": ZERO,
                "count": 0,
            })
            entry["real"] += to_decimal(wallet["real_balance"])
            entry["projected"] += to_decimal(wallet["projected_balance"])
            entry["count"] += 1

        return {
            "by_currency": [
                {
                    "currency_id": currency_id,
                    "real_balance": to_amount(entry["real"]),
                    "projected_balance": to_amount(entry["projected"]),
                    "wallet_count": entry["count"],
                }
                for currency_id, entry in sorted(totals.items())
            ],
            "wallet_count": len(wallets),
        }

    @staticmethod
    def linked_envelopes(wallet_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Envelopes of the user that share the wallet's currency.

        Shown before deleting a wallet so the user sees which budgets it
        may be funding.
        """
        wallet = WalletService.get_wallet(wallet_id, user_id)
        envelopes = SupabaseClient.fetch_rows(
            "envelopes",
            {"user_id": user_id, "currency_id": wallet["currency_id"]},
        )

        total = sum((to_decimal(e["assigned_budget"]) for e in envelopes), ZERO)
        return {
            "wallet_id": wallet["id"],
            "envelopes": envelopes,
            "count": len(envelopes),
            "total_assigned_budget": to_amount(total),
        }

    @staticmethod
    def list_movements(
        wallet_id: UUID | str,
        user_id: UUID | str,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Movement history of a wallet, newest first."""
        wallet = WalletService.get_wallet(wallet_id, user_id)
        return SupabaseClient.fetch_rows(
            "wallet_movements",
            {"wallet_id": wallet["id"]},
            order_by="date",
            limit=limit,
        )
