# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the finance domain logic:
# - models/: Pydantic schemas for request validation
# - services/: Wallets, envelopes, budget ledger, transactions, categories,
#   user config and subscriptions
#
# Services raise app.exceptions errors but never touch Request/Response
# objects, so they can be called from routers and Celery tasks alike.
# =============================================================================
