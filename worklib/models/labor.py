"""Pydantic models for Labor (main d'oeuvre)."""
from pydantic import BaseModel, Field
from typing import Optional


class LaborBase(BaseModel):
    """Base model for Labor."""
    name: str = Field(..., min_length=1, max_length=255, description="Labor name")
    description: Optional[str] = Field(None, description="Labor description")
    unit: str = Field(default="h", min_length=1, max_length=50, description="Unit, usually hours")
    unit_price: float = Field(default=0, ge=0, description="Hourly rate")
    category: Optional[str] = Field(None, max_length=255, description="Category name")


class LaborCreate(LaborBase):
    """Model for creating a new labor entry."""
    pass


class LaborUpdate(BaseModel):
    """Model for updating an existing labor entry."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    unit_price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=255)


class Labor(LaborBase):
    """Labor entry as stored in the catalog."""
    id: int = Field(..., description="Labor ID")
    created_at: Optional[str] = Field(None, description="Creation date")
    updated_at: Optional[str] = Field(None, description="Last update date")

    class Config:
        from_attributes = True
