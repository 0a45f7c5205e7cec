# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Every endpoint under /api (except health) depends on get_current_user.
# Supabase access tokens are verified one of two ways, picked from the
# token header:
# - HS256: the project's shared JWT secret
# - ES256/RS256: the public key with the matching "kid" from the project
#   JWKS document, cached for an hour
# =============================================================================

import logging
import time
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401 rather than a 403
security = HTTPBearer(auto_error=False)

TOKEN_AUDIENCE = "authenticated"
JWKS_CACHE_TTL = 3600


class JWKSCache:
    """Signing keys published by Supabase Auth, refreshed at most hourly."""

    def __init__(self, ttl: int = JWKS_CACHE_TTL):
        self.ttl = ttl
        self._keys: list[dict[str, Any]] = []
        self._fetched_at = 0.0

    @property
    def url(self) -> str:
        return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"

    def _refresh(self) -> None:
        try:
            response = httpx.get(self.url, timeout=10)
            response.raise_for_status()
        except httpx.HTTPError as e:
            # Stale keys are still better than none
            logger.warning(f"JWKS refresh failed, keeping {len(self._keys)} cached keys: {e}")
            return
        self._keys = response.json().get("keys", [])
        self._fetched_at = time.time()
        logger.debug(f"Loaded {len(self._keys)} signing keys from {self.url}")

    def find(self, kid: str) -> Optional[dict[str, Any]]:
        if not self._keys or time.time() - self._fetched_at > self.ttl:
            self._refresh()
        return next((key for key in self._keys if key.get("kid") == kid), None)


jwks_cache = JWKSCache()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Raises:
        JWTError: Bad signature, unknown key, wrong audience or garbage input
        ExpiredSignatureError: The token's exp is in the past
    """
    header = jwt.get_unverified_header(token)
    algorithm = header.get("alg", "HS256")

    if algorithm == "HS256":
        key: str | dict = settings.SUPABASE_JWT_SECRET
    else:
        kid = header.get("kid")
        key = jwks_cache.find(kid) if kid else None
        if key is None:
            raise JWTError(f"no signing key for alg={algorithm} kid={kid}")

    return jwt.decode(token, key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthUser:
    """
    Resolve the Bearer token into the calling user.

    Raises:
        HTTPException: 401 when the header is missing or the token is
            expired, forged, or carries no usable subject
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        claims = decode_access_token(credentials.credentials)
    except ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_id = UUID(subject)
    except ValueError:
        raise _unauthorized("Invalid token: malformed user ID")

    return AuthUser(id=user_id, email=claims.get("email"))
