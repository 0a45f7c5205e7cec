# =============================================================================
# app/routers/categories.py - Category & Subcategory Endpoints
# =============================================================================
# Two routers:
# - router: /api/categories
# - subcategories_router: /api/subcategories
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user, AuthUser
from core.models.category import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)
from core.services.category_service import CategoryService

router = APIRouter()
subcategories_router = APIRouter()


# =============================================================================
# Categories
# =============================================================================

@router.get("")
async def list_categories(user: AuthUser = Depends(get_current_user)):
    """List the user's categories in name order."""
    return {"success": True, "data": CategoryService.list_categories(user.id)}


@router.post("", status_code=201)
async def create_category(
    request: CategoryCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a category. Names are unique per user (case-insensitive).
    """
    category = CategoryService.create_category(
        user.id,
        name=request.name,
        color=request.color,
        emoji=request.emoji,
    )
    return {"success": True, "data": category}


@router.get("/{category_id}")
async def get_category(
    category_id: Annotated[UUID, Path(description="Category UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return {"success": True, "data": CategoryService.get_category(category_id, user.id)}


@router.put("/{category_id}")
async def update_category(
    category_id: Annotated[UUID, Path(description="Category UUID")],
    request: CategoryUpdate,
    user: AuthUser = Depends(get_current_user),
):
    category = CategoryService.update_category(
        category_id, user.id, request.model_dump(exclude_unset=True)
    )
    return {"success": True, "data": category}


@router.delete("/{category_id}")
async def delete_category(
    category_id: Annotated[UUID, Path(description="Category UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Soft delete a category and its subcategories.

    Existing transactions keep pointing at it.
    """
    CategoryService.delete_category(category_id, user.id)
    return {"success": True, "data": {"id": str(category_id), "deleted": True}}


@router.get("/{category_id}/subcategories")
async def list_category_subcategories(
    category_id: Annotated[UUID, Path(description="Category UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return {"success": True, "data": CategoryService.list_subcategories(category_id, user.id)}


# =============================================================================
# Subcategories
# =============================================================================

@subcategories_router.get("")
async def list_subcategories(
    user: AuthUser = Depends(get_current_user),
    category_id: Annotated[UUID | None, Query(description="Only this category's subcategories")] = None,
):
    if category_id:
        subcategories = CategoryService.list_subcategories(category_id, user.id)
    else:
        subcategories = CategoryService.list_user_subcategories(user.id)
    return {"success": True, "data": subcategories}


@subcategories_router.post("", status_code=201)
async def create_subcategory(
    request: SubcategoryCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a subcategory inside one of the user's categories.
    """
    subcategory = CategoryService.create_subcategory(
        user.id,
        category_id=request.category_id,
        name=request.name,
        color=request.color,
        emoji=request.emoji,
        image_url=request.image_url,
    )
    return {"success": True, "data": subcategory}


@subcategories_router.get("/{subcategory_id}")
async def get_subcategory(
    subcategory_id: Annotated[UUID, Path(description="Subcategory UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return {"success": True, "data": CategoryService.get_subcategory(subcategory_id, user.id)}


@subcategories_router.put("/{subcategory_id}")
async def update_subcategory(
    subcategory_id: Annotated[UUID, Path(description="Subcategory UUID")],
    request: SubcategoryUpdate,
    user: AuthUser = Depends(get_current_user),
):
    subcategory = CategoryService.update_subcategory(
        subcategory_id, user.id, request.model_dump(exclude_unset=True)
    )
    return {"success": True, "data": subcategory}


@subcategories_router.delete("/{subcategory_id}")
async def delete_subcategory(
    subcategory_id: Annotated[UUID, Path(description="Subcategory UUID")],
    user: AuthUser = Depends(get_current_user),
):
    CategoryService.delete_subcategory(subcategory_id, user.id)
    return {"success": True, "data": {"id": str(subcategory_id), "deleted": True}}
