# =============================================================================
# tests/test_api.py - API Endpoint Tests
# =============================================================================
# Exercises the routers end to end through FastAPI's TestClient with the
# in-memory database and authentication overridden:
# - Success envelope {"success": true, "data": ...} and status codes
# - Error envelope {"success": false, "error": ..., "code": ...}
# - Validation errors mapped to 400
#
# Run with: pytest tests/test_api.py -v
# =============================================================================

from unittest.mock import patch
from uuid import uuid4

from app.config import settings
from lib.supabase_client import SupabaseClient


# =============================================================================
# Root & Health
# =============================================================================

class TestHealth:
    """Tests for the unauthenticated endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/api/health"

    def test_health_ok(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "healthy"
        assert body["environment"] == "development"

    def test_health_reports_database_down(self, client):
        with patch.object(SupabaseClient, "get_client", side_effect=RuntimeError("connection refused")):
            response = client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_liveness(self, client):
        assert client.get("/api/health/live").json()["status"] == "alive"

    def test_unknown_route_shape(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not Found", "code": "NOT_FOUND"}


# =============================================================================
# Wallets
# =============================================================================

class TestWalletEndpoints:
    """Tests for /api/wallets."""

    def test_create_and_list(self, client):
        # Act
        response = client.post("/api/wallets", json={
            "name": "Checking",
            "type": "debit",
            "currency_id": "CLP",
            "initial_balance": 1000,
        })

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["real_balance"] == 1000.0
        assert body["data"]["projected_balance"] == 1000.0

        listed = client.get("/api/wallets").json()["data"]
        assert [w["id"] for w in listed] == [body["data"]["id"]]

    def test_invalid_body_is_400(self, client):
        response = client.post("/api/wallets", json={"name": "Checking", "type": "crypto"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"]

    def test_invalid_path_uuid_is_400(self, client):
        response = client.get("/api/wallets/not-a-uuid")

        assert response.status_code == 400

    def test_missing_wallet_is_404(self, client):
        response = client.get(f"/api/wallets/{uuid4()}")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "WALLET_NOT_FOUND"
        assert "suggestion" in body

    def test_foreign_wallet_is_403(self, client, other_user_id, make_wallet):
        wallet = make_wallet(other_user_id, balance=10)

        response = client.get(f"/api/wallets/{wallet['id']}")

        assert response.status_code == 403
        assert response.json()["code"] == "PERMISSION_DENIED"

    def test_business_rule_is_400(self, client):
        response = client.post("/api/wallets", json={"name": "Checking", "type": "debit", "initial_balance": -5})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_AMOUNT"

    def test_withdraw_warns_below_zero(self, client, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=10)

        response = client.post(
            f"/api/wallets/{wallet['id']}/deposit-withdraw", json={"amount": 25, "kind": "withdrawal"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["wallet"]["real_balance"] == -15.0
        assert [w["type"] for w in data["warnings"]] == ["NEGATIVE_WALLET"]

    def test_transfer_from_outside(self, client, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=0)

        response = client.post("/api/wallets/transfer", json={
            "source_wallet_id": "UNDECLARED",
            "target_wallet_id": wallet["id"],
            "amount": 300,
        })

        assert response.status_code == 200
        assert response.json()["data"]["source_wallet"] is None
        assert fake_db.get("wallets", wallet["id"])["real_balance"] == 300.0

    def test_transfer_malformed_wallet_id_is_400(self, client, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=100)

        response = client.post("/api/wallets/transfer", json={
            "source_wallet_id": wallet["id"],
            "target_wallet_id": "savings-account",
            "amount": 50,
        })

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"][0]["loc"] == ["body", "target_wallet_id"]
        assert fake_db.get("wallets", wallet["id"])["real_balance"] == 100.0

    def test_delete_shape(self, client, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=0)

        response = client.delete(f"/api/wallets/{wallet['id']}")

        assert response.json() == {"success": True, "data": {"id": wallet["id"], "deleted": True}}
        assert client.get(f"/api/wallets/{wallet['id']}").status_code == 404


# =============================================================================
# Envelopes
# =============================================================================

class TestEnvelopeEndpoints:
    """Tests for /api/envelopes and the budget ledger routes."""

    def test_assign_and_return(self, client, fake_db, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=500)
        envelope = client.post(
            "/api/envelopes", json={"name": "Groceries", "currency_id": "CLP"}
        ).json()["data"]

        assigned = client.post(
            f"/api/envelopes/{envelope['id']}/assignments", json={"wallet_id": wallet["id"], "amount": 200}
        )
        returned = client.post(f"/api/envelopes/{envelope['id']}/return")

        assert assigned.status_code == 201
        assert assigned.json()["data"]["wallet"]["projected_balance"] == 300.0
        assert returned.status_code == 200
        assert returned.json()["data"]["returned"] == 200.0
        assert fake_db.get("wallets", wallet["id"])["projected_balance"] == 500.0

    def test_envelope_transfer_insufficient(self, client, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=500)
        source = make_envelope(user_id, name="Groceries")
        target = make_envelope(user_id, name="Dining")

        response = client.post("/api/envelopes/transfer", json={
            "source_envelope_id": source["id"],
            "target_envelope_id": target["id"],
            "wallet_id": wallet["id"],
            "amount": 50,
        })

        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_BUDGET"

    def test_summary(self, client, user_id, make_envelope):
        envelope = make_envelope(user_id, budget=100)

        data = client.get(f"/api/envelopes/{envelope['id']}/summary").json()["data"]

        assert data["available"] == 100.0
        assert data["percent_used"] == 0.0


# =============================================================================
# Transactions
# =============================================================================

class TestTransactionEndpoints:
    """Tests for /api/transactions."""

    def test_create_with_overspend_warning(self, client, user_id, make_wallet, make_envelope):
        wallet = make_wallet(user_id, balance=1000)
        envelope = make_envelope(user_id, budget=50)

        response = client.post("/api/transactions", json={
            "amount": 80,
            "currency_id": "CLP",
            "wallet_id": wallet["id"],
            "type": "expense",
            "date": "2024-03-10T12:00:00Z",
            "envelope_id": envelope["id"],
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["amount"] == 80.0
        assert [w["type"] for w in body["warnings"]] == ["OVERSPEND_ENVELOPE"]

    def test_list_pagination_fields(self, client, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=1000)
        for day in range(1, 4):
            client.post("/api/transactions", json={
                "amount": day,
                "currency_id": "CLP",
                "wallet_id": wallet["id"],
                "type": "income",
                "date": f"2024-03-0{day}T00:00:00Z",
            })

        body = client.get("/api/transactions", params={"limit": 2, "type": "income"}).json()

        assert body["total"] == 3
        assert body["limit"] == 2
        assert body["offset"] == 0
        assert [t["amount"] for t in body["data"]] == [3.0, 2.0]

    def test_invalid_limit_is_400(self, client):
        assert client.get("/api/transactions", params={"limit": 0}).status_code == 400

    def test_totals(self, client, user_id, make_wallet):
        wallet = make_wallet(user_id, balance=0)
        client.post("/api/transactions", json={
            "amount": 100, "currency_id": "CLP", "wallet_id": wallet["id"],
            "type": "income", "date": "2024-03-01T00:00:00Z",
        })

        data = client.get("/api/transactions/totals").json()["data"]

        assert data == {"total_income": 100.0, "total_expenses": 0.0, "balance": 100.0}


# =============================================================================
# Settings & Subscriptions
# =============================================================================

class TestSettingsEndpoints:
    """Tests for currencies and onboarding."""

    def test_currencies(self, client):
        data = client.get("/api/currencies").json()["data"]

        assert [c["id"] for c in data] == ["CLP", "USD"]

    def test_config_requires_onboarding(self, client):
        response = client.get("/api/user/config")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "CONFIG_NOT_FOUND"
        assert body["requires_onboarding"] is True

    def test_onboarding_flow(self, client):
        created = client.post("/api/user/config", json={"main_currency_id": "USD"})
        updated = client.put("/api/user/config", json={"enabled_currencies": ["CLP"]})

        assert created.status_code == 201
        assert created.json()["data"]["enabled_currencies"] == ["USD"]
        assert updated.json()["data"]["enabled_currencies"] == ["USD", "CLP"]
        assert client.get("/api/user/config").json()["data"]["main_currency_id"] == "USD"


class TestSubscriptionEndpoints:
    """Tests for /api/subscriptions."""

    def test_sandbox_upgrade(self, client, plans):
        response = client.post("/api/subscriptions/upgrade", json={"plan": "premium"})

        assert response.status_code == 200
        status = client.get("/api/subscriptions/status").json()["data"]
        assert status["active_plan"]["plan"]["slug"] == "premium"
        assert status["can_invite"] is True

    def test_upgrade_without_payments_is_501(self, client, plans):
        with patch.object(settings, "PAYMENT_MODE", "production"):
            response = client.post("/api/subscriptions/upgrade", json={"plan": "premium"})

        assert response.status_code == 501
        assert response.json()["code"] == "PAYMENT_NOT_AVAILABLE"

    def test_trial_without_body(self, client, plans):
        response = client.post("/api/subscriptions/trial")

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "trial"

    def test_invite_on_free_plan_forbidden(self, client, plans):
        response = client.post("/api/subscriptions/invitations")

        assert response.status_code == 403
        assert response.json()["code"] == "UPGRADE_REQUIRED"
