# =============================================================================
# tests/test_auth.py - Authentication Tests
# =============================================================================
# Verifies get_current_user against real HS256 tokens signed with the
# configured secret (no dependency override), plus the JWKS key lookup used
# for asymmetric tokens.
# =============================================================================

import time
from unittest.mock import patch
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import JWTError, jwt

from app.auth.dependencies import JWKSCache, decode_access_token, jwks_cache
from app.config import settings
from app.main import app


def make_token(sub: str, email: str = "owner@example.com", expires_in: int = 3600, **claims) -> str:
    payload = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def anon_client(fake_db):
    """TestClient without the authentication override."""
    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestTokenVerification:
    """Tests for get_current_user via /api/auth/verify."""

    def test_valid_token(self, anon_client, user_id):
        response = anon_client.get("/api/auth/verify", headers=auth_header(make_token(user_id)))

        assert response.status_code == 200
        assert response.json()["data"] == {
            "valid": True,
            "user_id": user_id,
            "email": "owner@example.com",
        }

    def test_missing_header_is_401(self, anon_client):
        response = anon_client.get("/api/auth/verify")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_expired_token(self, anon_client, user_id):
        token = make_token(user_id, expires_in=-60)

        response = anon_client.get("/api/auth/verify", headers=auth_header(token))

        assert response.status_code == 401
        assert response.json()["error"] == "Token has expired"

    def test_wrong_secret(self, anon_client, user_id):
        token = jwt.encode(
            {"sub": user_id, "aud": "authenticated", "exp": int(time.time()) + 60},
            "some-other-secret-that-is-long-enough",
            algorithm="HS256",
        )

        response = anon_client.get("/api/auth/verify", headers=auth_header(token))

        assert response.status_code == 401

    def test_wrong_audience(self, anon_client, user_id):
        token = make_token(user_id, aud="anon")

        assert anon_client.get("/api/auth/verify", headers=auth_header(token)).status_code == 401

    def test_malformed_subject(self, anon_client):
        token = make_token("not-a-uuid")

        response = anon_client.get("/api/auth/verify", headers=auth_header(token))

        assert response.status_code == 401
        assert "malformed" in response.json()["error"]

    def test_protected_endpoint_requires_token(self, anon_client):
        assert anon_client.get("/api/wallets").status_code == 401


class TestMe:
    """Tests for /api/auth/me."""

    def test_profile_from_users_table(self, anon_client, user_id):
        response = anon_client.get("/api/auth/me", headers=auth_header(make_token(user_id)))

        data = response.json()["data"]
        assert data["id"] == user_id
        assert data["name"] == "Owner"

    def test_falls_back_to_token_claims(self, anon_client):
        unknown = str(uuid4())

        response = anon_client.get(
            "/api/auth/me", headers=auth_header(make_token(unknown, email="new@example.com"))
        )

        data = response.json()["data"]
        assert data["id"] == unknown
        assert data["email"] == "new@example.com"
        assert data["name"] is None


class TestJWKSCache:
    """Tests for the asymmetric-key lookup."""

    def _response(self, keys):
        return httpx.Response(200, json={"keys": keys}, request=httpx.Request("GET", "https://jwks"))

    def test_finds_key_by_kid_and_caches(self):
        cache = JWKSCache()
        keys = [{"kid": "k1", "kty": "EC"}, {"kid": "k2", "kty": "EC"}]

        with patch("app.auth.dependencies.httpx.get", return_value=self._response(keys)) as get:
            assert cache.find("k2") == keys[1]
            assert cache.find("k1") == keys[0]

        get.assert_called_once()
        assert get.call_args.args[0].endswith("/auth/v1/.well-known/jwks.json")

    def test_unknown_kid(self):
        cache = JWKSCache()

        with patch("app.auth.dependencies.httpx.get", return_value=self._response([])):
            assert cache.find("missing") is None

    def test_refresh_failure_keeps_stale_keys(self):
        cache = JWKSCache(ttl=0)
        keys = [{"kid": "k1", "kty": "EC"}]
        with patch("app.auth.dependencies.httpx.get", return_value=self._response(keys)):
            cache.find("k1")

        with patch("app.auth.dependencies.httpx.get", side_effect=httpx.ConnectError("down")):
            assert cache.find("k1") == keys[0]

    def test_asymmetric_token_without_key_is_rejected(self):
        token = make_token(str(uuid4()))
        header = {"alg": "ES256", "kid": "unknown", "typ": "JWT"}

        with patch("app.auth.dependencies.jwt.get_unverified_header", return_value=header), \
                patch.object(jwks_cache, "find", return_value=None):
            with pytest.raises(JWTError):
                decode_access_token(token)
