# =============================================================================
# core/models/category.py - Category & Subcategory Schemas
# =============================================================================

from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    """Example: {"name": "Food", "emoji": "🍔"}"""
    name: str = Field(..., max_length=60)
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=60)
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)


class SubcategoryCreate(BaseModel):
    """Example: {"category_id": "550e8400-...", "name": "Restaurants"}"""
    category_id: UUID
    name: str = Field(..., max_length=60)
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)
    image_url: str | None = Field(default=None, max_length=500)


class SubcategoryUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=60)
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=10)
    image_url: str | None = Field(default=None, max_length=500)
