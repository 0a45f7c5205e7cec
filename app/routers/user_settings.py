# =============================================================================
# app/routers/user_settings.py - Currency & User Configuration Endpoints
# =============================================================================
# Two routers:
# - currencies_router: /api/currencies (public catalog, still needs a token)
# - user_config_router: /api/user/config (onboarding and preferences)
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import get_current_user, AuthUser
from core.models.user_config import UserConfigCreate, UserConfigUpdate
from core.services.config_service import ConfigService

currencies_router = APIRouter()
user_config_router = APIRouter()


@currencies_router.get("")
async def list_currencies(user: AuthUser = Depends(get_current_user)):
    """Active currencies in display order."""
    return {"success": True, "data": ConfigService.list_currencies()}


@user_config_router.get("")
async def get_user_config(user: AuthUser = Depends(get_current_user)):
    """
    Get the user's configuration.

    Returns 404 with `requires_onboarding: true` until POST has been called.
    """
    return {"success": True, "data": ConfigService.get_user_config(user.id)}


@user_config_router.post("", status_code=201)
async def create_user_config(
    request: UserConfigCreate,
    user: AuthUser = Depends(get_current_user),
):
    """Complete onboarding by choosing a main currency and preferences."""
    config = ConfigService.create_user_config(user.id, request.model_dump(mode="json"))
    return {"success": True, "data": config}


@user_config_router.put("")
async def update_user_config(
    request: UserConfigUpdate,
    user: AuthUser = Depends(get_current_user),
):
    config = ConfigService.update_user_config(
        user.id, request.model_dump(mode="json", exclude_unset=True)
    )
    return {"success": True, "data": config}
