# =============================================================================
# tests/test_budget_service.py - Budget Ledger Tests
# =============================================================================
# Assigning wallet money to envelopes, returning unspent budget and moving
# budget between envelopes.
#
# Run with: pytest tests/test_budget_service.py -v
# =============================================================================

from uuid import uuid4

import pytest

from app.exceptions import InsufficientBudgetError, InvalidInputError, PermissionDeniedError
from core.services.budget_service import BudgetService


def _spend(fake_db, envelope, user_id, amount):
    """Seed an expense charged to an envelope."""
    return fake_db.seed(
        "transactions",
        amount=float(amount),
        currency_id=envelope["currency_id"],
        wallet_id=str(uuid4()),
        type="expense",
        user_id=user_id,
        envelope_id=envelope["id"],
        date="2024-03-10T12:00:00+00:00",
        deleted_at=None,
    )


# =============================================================================
# Assign
# =============================================================================

class TestAssignBudget:
    """Tests for BudgetService.assign_budget."""

    def test_assignment_reserves_projected_balance_only(self, fake_db, user_id, make_wallet, make_envelope):
        # Arrange
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)

        # Act
        result = BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 100)

        # Assert
        stored = fake_db.get("wallets", wallet["id"])
        assert stored["real_balance"] == 500.0
        assert stored["projected_balance"] == 400.0
        assert result["envelope"]["assigned_budget"] == 100.0
        assert result["assignment"]["type"] == "initial"
        assert result["assignment"]["amount"] == 100.0

    def test_assignment_grows_participant_budget(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id, budget=20)

        BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 80)

        participant = fake_db.rows("envelope_participants", envelope_id=envelope["id"])[0]
        assert participant["assigned_budget"] == 100.0
        assert fake_db.get("envelopes", envelope["id"])["assigned_budget"] == 100.0

    def test_assignment_records_wallet_movement(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)

        BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 100)

        movements = fake_db.rows("wallet_movements", wallet_id=wallet["id"])
        assert [m["type"] for m in movements] == ["envelope_assignment"]
        assert movements[0]["real_balance_after"] == 500.0

    def test_currency_mismatch_rejected(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500, currency_id="USD")
        envelope = make_envelope(user_id, currency_id="CLP")

        with pytest.raises(InvalidInputError) as exc_info:
            BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 100)

        assert exc_info.value.code == "CURRENCY_MISMATCH"
        assert fake_db.rows("budget_assignments") == []

    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive_amount_rejected(self, fake_db, user_id, make_wallet, make_envelope, amount):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)

        with pytest.raises(InvalidInputError):
            BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], amount)

    def test_assignment_allowed_beyond_balance(self, fake_db, user_id, make_wallet, make_envelope):
        """Projected balance may go negative; it's a planning figure."""
        wallet = make_wallet(user_id, balance=50)
        envelope = make_envelope(user_id)

        result = BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 80)

        assert result["wallet"]["projected_balance"] == -30.0

    def test_foreign_wallet_forbidden(self, fake_db, user_id, other_user_id, make_wallet, make_envelope):
        wallet = make_wallet(other_user_id, balance=500)
        envelope = make_envelope(user_id)

        with pytest.raises(PermissionDeniedError):
            BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 100)

    def test_list_assignments_summary(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id, spent=30)
        BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 100)

        result = BudgetService.list_assignments(envelope["id"], user_id)

        assert len(result["assignments"]) == 1
        assert result["summary"] == {"assigned_budget": 100.0, "spent": 30.0, "free": 70.0}


# =============================================================================
# Return
# =============================================================================

class TestReturnBudget:
    """Tests for BudgetService.return_budget."""

    def test_return_to_chosen_wallet(self, fake_db, user_id, make_wallet, make_envelope):
        # Arrange
        funding = make_wallet(user_id, balance=500, name="Funding")
        target = make_wallet(user_id, balance=0, name="Savings")
        envelope = make_envelope(user_id)
        BudgetService.assign_budget(envelope["id"], user_id, funding["id"], 100)
        _spend(fake_db, envelope, user_id, 40)

        # Act
        result = BudgetService.return_budget(envelope["id"], user_id, target_wallet_id=target["id"])

        # Assert
        assert result["returned"] == 60.0
        assert result["returns"] == [{"wallet_id": target["id"], "amount": 60.0}]
        assert fake_db.get("wallets", target["id"])["projected_balance"] == 60.0
        assert fake_db.get("wallets", funding["id"])["projected_balance"] == 400.0
        assert result["envelope"]["assigned_budget"] == 40.0

    def test_return_splits_across_funding_wallets(self, fake_db, user_id, make_wallet, make_envelope):
        first = make_wallet(user_id, balance=500, name="First")
        second = make_wallet(user_id, balance=300, name="Second")
        envelope = make_envelope(user_id)
        BudgetService.assign_budget(envelope["id"], user_id, first["id"], 60)
        BudgetService.assign_budget(envelope["id"], user_id, second["id"], 40)
        _spend(fake_db, envelope, user_id, 50)

        result = BudgetService.return_budget(envelope["id"], user_id)

        shares = {r["wallet_id"]: r["amount"] for r in result["returns"]}
        assert shares == {first["id"]: 30.0, second["id"]: 20.0}
        assert fake_db.get("wallets", first["id"])["projected_balance"] == 470.0
        assert fake_db.get("wallets", second["id"])["projected_balance"] == 280.0

    def test_split_return_never_exceeds_free_budget(self, fake_db, user_id, make_wallet, make_envelope):
        """Cent shares that round up must not release more than is free."""
        # Arrange
        wallets = [make_wallet(user_id, balance=10, name=f"Wallet {i}") for i in range(4)]
        envelope = make_envelope(user_id)
        for wallet in wallets:
            BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 1)
        _spend(fake_db, envelope, user_id, "3.98")

        # Act
        result = BudgetService.return_budget(envelope["id"], user_id)

        # Assert
        assert result["returned"] == 0.02
        assert sum(r["amount"] for r in result["returns"]) == pytest.approx(0.02)
        decreases = [r for r in fake_db.rows("budget_assignments", envelope_id=envelope["id"]) if r["type"] == "decrease"]
        assert sorted(r["amount"] for r in decreases) == [-0.01, -0.01]
        released = sum(fake_db.get("wallets", w["id"])["projected_balance"] for w in wallets)
        assert released == pytest.approx(36.02)
        assert BudgetService.user_free_budget(envelope["id"], user_id)["free"] == 0
        assert result["envelope"]["assigned_budget"] == 3.98

    def test_return_writes_decrease_rows(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)
        BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 100)

        BudgetService.return_budget(envelope["id"], user_id)

        ledger = fake_db.rows("budget_assignments", envelope_id=envelope["id"])
        assert sorted((row["type"], row["amount"]) for row in ledger) == [("decrease", -100.0), ("initial", 100.0)]
        assert BudgetService.user_free_budget(envelope["id"], user_id)["free"] == 0

    def test_nothing_to_return(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)
        BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 50)
        _spend(fake_db, envelope, user_id, 50)

        with pytest.raises(InvalidInputError) as exc_info:
            BudgetService.return_budget(envelope["id"], user_id)

        assert exc_info.value.code == "NO_FREE_BUDGET"

    def test_deleted_funding_wallet_needs_target(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)
        BudgetService.assign_budget(envelope["id"], user_id, wallet["id"], 50)
        fake_db.tables["wallets"][0]["deleted_at"] = "2024-03-11T00:00:00+00:00"

        with pytest.raises(InvalidInputError) as exc_info:
            BudgetService.return_budget(envelope["id"], user_id)

        assert exc_info.value.code == "NO_FUNDING_WALLET"


# =============================================================================
# Envelope -> Envelope
# =============================================================================

class TestTransferBetweenEnvelopes:
    """Tests for BudgetService.transfer_between_envelopes."""

    def test_transfer_moves_budget(self, fake_db, user_id, make_wallet, make_envelope):
        # Arrange
        wallet = make_wallet(user_id, balance=500)
        groceries = make_envelope(user_id, name="Groceries")
        dining = make_envelope(user_id, name="Dining")
        BudgetService.assign_budget(groceries["id"], user_id, wallet["id"], 100)

        # Act
        result = BudgetService.transfer_between_envelopes(
            user_id, groceries["id"], dining["id"], wallet["id"], 30
        )

        # Assert
        assert result["amount"] == 30.0
        assert result["source_envelope"]["assigned_budget"] == 70.0
        assert result["target_envelope"]["assigned_budget"] == 30.0
        target_rows = fake_db.rows("budget_assignments", envelope_id=dining["id"])
        assert [(r["type"], r["amount"]) for r in target_rows] == [("increase", 30.0)]

    def test_transfer_leaves_wallet_untouched(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        groceries = make_envelope(user_id, name="Groceries")
        dining = make_envelope(user_id, name="Dining")
        BudgetService.assign_budget(groceries["id"], user_id, wallet["id"], 100)

        BudgetService.transfer_between_envelopes(user_id, groceries["id"], dining["id"], wallet["id"], 30)

        stored = fake_db.get("wallets", wallet["id"])
        assert (stored["real_balance"], stored["projected_balance"]) == (500.0, 400.0)

    def test_insufficient_free_budget(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        groceries = make_envelope(user_id, name="Groceries")
        dining = make_envelope(user_id, name="Dining")
        BudgetService.assign_budget(groceries["id"], user_id, wallet["id"], 100)
        _spend(fake_db, groceries, user_id, 80)

        with pytest.raises(InsufficientBudgetError) as exc_info:
            BudgetService.transfer_between_envelopes(user_id, groceries["id"], dining["id"], wallet["id"], 30)

        assert exc_info.value.code == "INSUFFICIENT_BUDGET"
        assert exc_info.value.details == {"available": 20.0, "requested": 30.0}

    def test_same_envelope_rejected(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        envelope = make_envelope(user_id)

        with pytest.raises(InvalidInputError) as exc_info:
            BudgetService.transfer_between_envelopes(user_id, envelope["id"], envelope["id"], wallet["id"], 10)

        assert exc_info.value.code == "SAME_ENVELOPE"

    def test_currency_mismatch_rejected(self, fake_db, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        groceries = make_envelope(user_id, name="Groceries")
        travel = make_envelope(user_id, name="Travel", currency_id="USD")
        BudgetService.assign_budget(groceries["id"], user_id, wallet["id"], 100)

        with pytest.raises(InvalidInputError) as exc_info:
            BudgetService.transfer_between_envelopes(user_id, groceries["id"], travel["id"], wallet["id"], 10)

        assert exc_info.value.code == "CURRENCY_MISMATCH"

    def test_wallet_currency_must_match_envelopes(self, fake_db, user_id, make_wallet, make_envelope):
        funding = make_wallet(user_id, balance=500)
        dollars = make_wallet(user_id, balance=500, currency_id="USD", name="Dollars")
        groceries = make_envelope(user_id, name="Groceries")
        dining = make_envelope(user_id, name="Dining")
        BudgetService.assign_budget(groceries["id"], user_id, funding["id"], 100)

        with pytest.raises(InvalidInputError) as exc_info:
            BudgetService.transfer_between_envelopes(user_id, groceries["id"], dining["id"], dollars["id"], 10)

        assert exc_info.value.code == "CURRENCY_MISMATCH"
        assert fake_db.rows("budget_assignments", envelope_id=dining["id"]) == []
