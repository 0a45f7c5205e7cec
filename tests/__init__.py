# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Billetera API:
# - fake_supabase.py: In-memory stand-in for the Supabase query builder
# - test_*_service.py: Service-layer tests against the fake database
# - test_api.py: Endpoint tests through FastAPI's TestClient
# - test_auth.py: JWT verification
#
# Run tests with: pytest
# =============================================================================
