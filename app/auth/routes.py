# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# =============================================================================

import logging
from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me")
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Get the current authenticated user's profile.

    Falls back to the token claims when the profile row doesn't exist yet.

    Raises:
        401: If not authenticated
    """
    try:
        profile = SupabaseClient.fetch_row("users", user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user profile: {e}")
        profile = None

    if profile:
        data = UserResponse(**profile)
    else:
        # User exists in auth but not yet in public.users
        data = UserResponse(id=user.id, email=user.email)

    return {"success": True, "data": data.model_dump(mode="json")}


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "success": True,
        "data": {
            "valid": True,
            "user_id": str(user.id),
            "email": user.email,
        },
    }
