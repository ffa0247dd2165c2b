"""Pydantic models for Work Categories."""
from pydantic import BaseModel, Field
from typing import Optional


class CategoryBase(BaseModel):
    """Base model for Category."""
    name: str = Field(..., min_length=1, max_length=255, description="Category name")
    description: Optional[str] = Field(None, description="Category description")
    parent_id: Optional[int] = Field(None, description="Parent category ID for sub-categories")
    position: int = Field(default=0, ge=0, description="Display position among siblings")


class CategoryCreate(CategoryBase):
    """Model for creating a new category."""
    pass


class CategoryUpdate(BaseModel):
    """Model for updating an existing category."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    position: Optional[int] = Field(None, ge=0)


class CategoryResponse(CategoryBase):
    """Response model for Category."""
    id: int = Field(..., description="Category ID")
    created_date: Optional[str] = Field(None, description="Creation date")

    class Config:
        from_attributes = True
