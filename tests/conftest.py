# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Replaces the Supabase client singleton with an in-memory fake
# - Seeds the currency catalog and plans most tests rely on
# - Provides a TestClient with authentication overridden
# =============================================================================

import os
from uuid import uuid4

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-0123456789")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DEFAULT_CURRENCY", "USD")
os.environ.setdefault("PAYMENT_MODE", "sandbox")

from unittest.mock import patch

import pytest

from lib.supabase_client import SupabaseClient
from tests.fake_supabase import FakeSupabase


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """
    In-memory database installed as the Supabase client singleton.

    Seeded with CLP and USD (active) and EUR (inactive).
    """
    db = FakeSupabase()
    db.seed("currencies", id="CLP", name="Chilean Peso", symbol="$", decimals=0, active=True, sort_order=1)
    db.seed("currencies", id="USD", name="US Dollar", symbol="US$", decimals=2, active=True, sort_order=2)
    db.seed("currencies", id="EUR", name="Euro", symbol="€", decimals=2, active=False, sort_order=3)

    with patch.object(SupabaseClient, "_instance", db):
        yield db


@pytest.fixture
def user_id(fake_db):
    """A registered user."""
    uid = str(uuid4())
    fake_db.seed("users", id=uid, email="owner@example.com", name="Owner")
    return uid


@pytest.fixture
def other_user_id(fake_db):
    """A second registered user."""
    uid = str(uuid4())
    fake_db.seed("users", id=uid, email="friend@example.com", name="Friend")
    return uid


@pytest.fixture
def plans(fake_db):
    """
    Free plan (2 wallets, 2 envelopes, no linked users) and a premium plan
    (unlimited, 3 linked users).
    """
    free = fake_db.seed(
        "subscription_plans", slug="free", name="Free", active=True, max_linked_users=0, trial_days=0
    )
    premium = fake_db.seed(
        "subscription_plans", slug="premium", name="Premium", active=True, max_linked_users=3, trial_days=7
    )
    fake_db.seed("plan_limits", plan_id=free["id"], resource_key="wallets", max_quantity=2)
    fake_db.seed("plan_limits", plan_id=free["id"], resource_key="envelopes", max_quantity=2)
    fake_db.seed("plan_limits", plan_id=premium["id"], resource_key="wallets", max_quantity=None)
    fake_db.seed("plan_capabilities", plan_id=premium["id"], capability_key="shared_envelopes", enabled=True)
    fake_db.seed(
        "payment_products", plan_id=premium["id"], currency="USD", period="monthly", price=4.99, active=True
    )
    return {"free": free, "premium": premium}


# =============================================================================
# Seed Helpers
# =============================================================================

@pytest.fixture
def make_wallet(fake_db):
    """Seed a wallet row directly, bypassing the service."""
    def _make(user_id, balance=0, currency_id="CLP", name="Checking", projected=None):
        return fake_db.seed(
            "wallets",
            name=name,
            type="debit",
            currency_id=currency_id,
            real_balance=float(balance),
            projected_balance=float(balance if projected is None else projected),
            user_id=user_id,
            is_shared=False,
            deleted_at=None,
        )
    return _make


@pytest.fixture
def make_envelope(fake_db):
    """Seed an envelope plus its owner participant row."""
    def _make(user_id, budget=0, currency_id="CLP", name="Groceries", spent=0):
        envelope = fake_db.seed(
            "envelopes",
            name=name,
            type="expense",
            currency_id=currency_id,
            assigned_budget=float(budget),
            spent=float(spent),
            user_id=user_id,
            is_shared=False,
            deleted_at=None,
        )
        fake_db.seed(
            "envelope_participants",
            envelope_id=envelope["id"],
            user_id=user_id,
            role="owner",
            assigned_budget=float(budget),
            spent=float(spent),
        )
        return envelope
    return _make


@pytest.fixture
def make_category(fake_db):
    def _make(user_id, name="Food"):
        return fake_db.seed("categories", name=name, user_id=user_id, deleted_at=None)
    return _make


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def client(fake_db, user_id):
    """
    TestClient authenticated as `user_id`.
    """
    from uuid import UUID

    from fastapi.testclient import TestClient

    from app.auth import AuthUser, get_current_user
    from app.main import app

    app.dependency_overrides[get_current_user] = lambda: AuthUser(id=UUID(user_id), email="owner@example.com")
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
