# =============================================================================
# tests/test_wallet_service.py - Wallet Service Tests
# =============================================================================
# Wallet CRUD and the real-money operations: adjustments, deposits,
# withdrawals and transfers.
#
# Run with: pytest tests/test_wallet_service.py -v
# =============================================================================

from decimal import Decimal
from uuid import uuid4

import pytest

from app.exceptions import (
    InvalidInputError,
    PermissionDeniedError,
    PlanLimitReachedError,
    WalletNotFoundError,
)
from core.services.wallet_service import WalletService


# =============================================================================
# Create
# =============================================================================

class TestCreateWallet:
    """Tests for WalletService.create_wallet."""

    def test_opening_balance_sets_both_balances(self, fake_db, user_id):
        """Real and projected balance both start at the opening balance."""
        # Act
        wallet = WalletService.create_wallet(user_id, "Checking", "debit", "CLP", Decimal("150000"))

        # Assert
        assert wallet["real_balance"] == 150000.0
        assert wallet["projected_balance"] == 150000.0
        assert wallet["currency_id"] == "CLP"
        assert wallet["user_id"] == user_id

    def test_opening_balance_records_deposit(self, fake_db, user_id):
        wallet = WalletService.create_wallet(user_id, "Checking", "debit", "CLP", 5000)

        transactions = fake_db.rows("transactions", wallet_id=wallet["id"])
        assert len(transactions) == 1
        assert transactions[0]["type"] == "deposit"
        assert transactions[0]["amount"] == 5000.0

        movements = fake_db.rows("wallet_movements", wallet_id=wallet["id"])
        assert [m["type"] for m in movements] == ["creation"]

    def test_zero_balance_records_no_transaction(self, fake_db, user_id):
        wallet = WalletService.create_wallet(user_id, "Cash", "cash", "CLP")

        assert fake_db.rows("transactions", wallet_id=wallet["id"]) == []
        assert len(fake_db.rows("wallet_movements", wallet_id=wallet["id"])) == 1

    def test_negative_opening_balance_rejected(self, fake_db, user_id):
        """A wallet can't be created already in debt."""
        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.create_wallet(user_id, "Card", "credit", "CLP", -100)

        assert exc_info.value.code == "NEGATIVE_INITIAL_BALANCE"
        assert fake_db.rows("wallets") == []

    def test_blank_name_rejected(self, fake_db, user_id):
        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.create_wallet(user_id, "   ", "debit", "CLP")

        assert exc_info.value.code == "INVALID_NAME"

    def test_invalid_type_rejected(self, fake_db, user_id):
        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.create_wallet(user_id, "Checking", "piggy_bank", "CLP")

        assert exc_info.value.code == "INVALID_WALLET_TYPE"

    @pytest.mark.parametrize("currency", ["XXX", "EUR"])
    def test_unknown_or_inactive_currency_rejected(self, fake_db, user_id, currency):
        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.create_wallet(user_id, "Checking", "debit", currency)

        assert exc_info.value.code == "INVALID_CURRENCY"

    def test_currency_defaults_to_main_currency(self, fake_db, user_id):
        fake_db.seed("user_config", user_id=user_id, main_currency_id="USD", enabled_currencies=["USD"])

        wallet = WalletService.create_wallet(user_id, "Checking", "debit")

        assert wallet["currency_id"] == "USD"

    def test_plan_wallet_limit_enforced(self, fake_db, user_id, plans, make_wallet):
        """Free plan allows two wallets."""
        make_wallet(user_id, name="One")
        make_wallet(user_id, name="Two")

        with pytest.raises(PlanLimitReachedError) as exc_info:
            WalletService.create_wallet(user_id, "Three", "debit", "CLP")

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"resource": "wallets", "limit": 2}


# =============================================================================
# Read / Update / Delete
# =============================================================================

class TestWalletAccess:
    """Tests for ownership and soft delete."""

    def test_missing_wallet_is_not_found(self, fake_db, user_id):
        with pytest.raises(WalletNotFoundError):
            WalletService.get_wallet(str(uuid4()), user_id)

    def test_foreign_wallet_is_forbidden(self, fake_db, user_id, other_user_id, make_wallet):
        wallet = make_wallet(other_user_id)

        with pytest.raises(PermissionDeniedError):
            WalletService.get_wallet(wallet["id"], user_id)

    def test_update_changes_editable_fields_only(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=100)

        updated = WalletService.update_wallet(
            wallet["id"], user_id, {"name": " Savings ", "type": "savings", "real_balance": 999}
        )

        assert updated["name"] == "Savings"
        assert updated["type"] == "savings"
        assert updated["real_balance"] == 100.0

    def test_delete_requires_zero_balance(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=10)

        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.delete_wallet(wallet["id"], user_id)

        assert exc_info.value.code == "WALLET_NOT_EMPTY"

    def test_deleted_wallet_disappears(self, fake_db, user_id, make_wallet):
        """Soft-deleted wallets are excluded from reads but kept in the table."""
        wallet = make_wallet(user_id, balance=0)

        WalletService.delete_wallet(wallet["id"], user_id)

        assert WalletService.list_wallets(user_id) == []
        with pytest.raises(WalletNotFoundError):
            WalletService.get_wallet(wallet["id"], user_id)
        assert fake_db.get("wallets", wallet["id"])["deleted_at"] is not None


# =============================================================================
# Adjust
# =============================================================================

class TestAdjustBalance:
    """Tests for WalletService.adjust_balance."""

    def test_positive_delta_records_income(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=1000)

        result = WalletService.adjust_balance(wallet["id"], user_id, Decimal("250"), "Found cash")

        assert result["previous_balance"] == 1000.0
        assert result["new_balance"] == 1250.0
        assert result["wallet"]["real_balance"] == 1250.0
        assert result["wallet"]["projected_balance"] == 1250.0
        assert result["transaction"]["type"] == "income"
        assert result["transaction"]["amount"] == 250.0

    def test_negative_delta_records_expense(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=1000)

        result = WalletService.adjust_balance(wallet["id"], user_id, -300)

        assert result["new_balance"] == 700.0
        assert result["transaction"]["type"] == "expense"
        assert result["transaction"]["amount"] == 300.0
        movements = fake_db.rows("wallet_movements", wallet_id=wallet["id"], type="adjustment")
        assert movements[0]["real_balance_after"] == 700.0

    def test_zero_delta_rejected(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=1000)

        with pytest.raises(InvalidInputError):
            WalletService.adjust_balance(wallet["id"], user_id, 0)


# =============================================================================
# Deposit / Withdraw
# =============================================================================

class TestDepositOrWithdraw:
    """Tests for WalletService.deposit_or_withdraw."""

    def test_deposit_adds_to_both_balances(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=100, projected=40)

        result = WalletService.deposit_or_withdraw(wallet["id"], user_id, 50, "deposit")

        assert result["wallet"]["real_balance"] == 150.0
        assert result["wallet"]["projected_balance"] == 90.0
        assert result["movement"]["real_balance_after"] == 150.0
        assert result["warnings"] == []

    def test_overdraw_is_allowed_with_warning(self, fake_db, user_id, make_wallet):
        """Going below zero never blocks the write."""
        wallet = make_wallet(user_id, balance=100)

        result = WalletService.deposit_or_withdraw(wallet["id"], user_id, 150, "withdrawal")

        assert result["wallet"]["real_balance"] == -50.0
        assert len(result["warnings"]) == 1
        warning = result["warnings"][0]
        assert warning["type"] == "NEGATIVE_WALLET"
        assert warning["details"]["real_balance"] == -50.0
        assert warning["details"]["wallet_name"] == "Checking"

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_rejected(self, fake_db, user_id, make_wallet, amount):
        wallet = make_wallet(user_id, balance=100)

        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.deposit_or_withdraw(wallet["id"], user_id, amount, "deposit")

        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_unknown_kind_rejected(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=100)

        with pytest.raises(InvalidInputError):
            WalletService.deposit_or_withdraw(wallet["id"], user_id, 10, "refund")


# =============================================================================
# Transfer
# =============================================================================

class TestTransfer:
    """Tests for WalletService.transfer."""

    def test_transfer_moves_money(self, fake_db, user_id, make_wallet):
        source = make_wallet(user_id, balance=500, name="Checking")
        target = make_wallet(user_id, balance=0, name="Savings")

        result = WalletService.transfer(user_id, source["id"], target["id"], 200, "Saving up")

        assert result["source_wallet"]["real_balance"] == 300.0
        assert result["target_wallet"]["real_balance"] == 200.0
        assert [t["type"] for t in result["transactions"]] == ["transfer", "deposit"]
        assert result["transactions"][0]["target_wallet_id"] == target["id"]
        assert result["warnings"] == []

    def test_undeclared_source_only_credits_target(self, fake_db, user_id, make_wallet):
        """Money from outside the app only touches the target wallet."""
        target = make_wallet(user_id, balance=0)

        result = WalletService.transfer(user_id, "UNDECLARED", target["id"], 80)

        assert result["source_wallet"] is None
        assert result["target_wallet"]["real_balance"] == 80.0
        assert [t["type"] for t in result["transactions"]] == ["deposit"]

    def test_undeclared_target_only_debits_source(self, fake_db, user_id, make_wallet):
        source = make_wallet(user_id, balance=100)

        result = WalletService.transfer(user_id, source["id"], "UNDECLARED", 30)

        assert result["source_wallet"]["real_balance"] == 70.0
        assert result["target_wallet"] is None

    def test_both_sides_undeclared_rejected(self, fake_db, user_id):
        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.transfer(user_id, "UNDECLARED", "UNDECLARED", 10)

        assert exc_info.value.code == "INVALID_TRANSFER"

    def test_same_wallet_rejected(self, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=100)

        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.transfer(user_id, wallet["id"], wallet["id"], 10)

        assert exc_info.value.code == "SAME_WALLET"

    @pytest.mark.parametrize("amount", [0, -1, Decimal("-0.50")])
    def test_non_positive_amount_rejected(self, fake_db, user_id, make_wallet, amount):
        source = make_wallet(user_id, balance=100)
        target = make_wallet(user_id, balance=0, name="Savings")

        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.transfer(user_id, source["id"], target["id"], amount)

        assert exc_info.value.code == "INVALID_AMOUNT"
        assert fake_db.get("wallets", source["id"])["real_balance"] == 100.0

    def test_currency_mismatch_rejected(self, fake_db, user_id, make_wallet):
        source = make_wallet(user_id, balance=100, currency_id="CLP")
        target = make_wallet(user_id, balance=0, currency_id="USD", name="Dollars")

        with pytest.raises(InvalidInputError) as exc_info:
            WalletService.transfer(user_id, source["id"], target["id"], 10)

        assert exc_info.value.code == "CURRENCY_MISMATCH"

    def test_foreign_target_is_forbidden(self, fake_db, user_id, other_user_id, make_wallet):
        source = make_wallet(user_id, balance=100)
        target = make_wallet(other_user_id, balance=0)

        with pytest.raises(PermissionDeniedError):
            WalletService.transfer(user_id, source["id"], target["id"], 10)

    def test_source_going_negative_warns(self, fake_db, user_id, make_wallet):
        source = make_wallet(user_id, balance=10)
        target = make_wallet(user_id, balance=0, name="Savings")

        result = WalletService.transfer(user_id, source["id"], target["id"], 25)

        assert result["source_wallet"]["real_balance"] == -15.0
        assert [w["type"] for w in result["warnings"]] == ["NEGATIVE_WALLET"]


# =============================================================================
# Reporting
# =============================================================================

class TestReporting:
    """Tests for consolidated balance and linked envelopes."""

    def test_consolidated_balance_groups_by_currency(self, fake_db, user_id, make_wallet):
        make_wallet(user_id, balance=100, projected=60, currency_id="CLP")
        make_wallet(user_id, balance=50, currency_id="CLP", name="Cash")
        make_wallet(user_id, balance=20, currency_id="USD", name="Dollars")

        result = WalletService.consolidated_balance(user_id)

        assert result["wallet_count"] == 3
        by_currency = {row["currency_id"]: row for row in result["by_currency"]}
        assert by_currency["CLP"]["real_balance"] == 150.0
        assert by_currency["CLP"]["projected_balance"] == 110.0
        assert by_currency["CLP"]["wallet_count"] == 2
        assert by_currency["USD"]["real_balance"] == 20.0

    def test_linked_envelopes_share_currency(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=100, currency_id="CLP")
        make_envelope(user_id, budget=30, currency_id="CLP", name="Food")
        make_envelope(user_id, budget=20, currency_id="CLP", name="Bus")
        make_envelope(user_id, budget=99, currency_id="USD", name="Travel")

        result = WalletService.linked_envelopes(wallet["id"], user_id)

        assert result["count"] == 2
        assert result["total_assigned_budget"] == 50.0
