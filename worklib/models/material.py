"""Pydantic models for Materials (fournitures)."""
from pydantic import BaseModel, Field
from typing import Optional

from worklib.config import settings


class MaterialBase(BaseModel):
    """Base model for Material."""
    reference: Optional[str] = Field(None, max_length=100, description="Reference code")
    name: str = Field(..., min_length=1, max_length=255, description="Material name")
    description: Optional[str] = Field(None, description="Material description")
    unit: str = Field(..., min_length=1, max_length=50, description="Unit of measurement")
    unit_price: float = Field(default=0, ge=0, description="Unit price without VAT")
    vat_rate: float = Field(default=settings.DEFAULT_VAT_RATE, ge=0, le=100, description="VAT rate in percent")
    supplier: Optional[str] = Field(None, max_length=255, description="Supplier")
    category: Optional[str] = Field(None, max_length=255, description="Category name")


class MaterialCreate(MaterialBase):
    """Model for creating a new material."""
    pass


class MaterialUpdate(BaseModel):
    """Model for updating an existing material."""
    reference: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    unit_price: Optional[float] = Field(None, ge=0)
    vat_rate: Optional[float] = Field(None, ge=0, le=100)
    supplier: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=255)


class Material(MaterialBase):
    """Material as stored in the catalog."""
    id: int = Field(..., description="Material ID")
    created_at: Optional[str] = Field(None, description="Creation date")
    updated_at: Optional[str] = Field(None, description="Last update date")

    # Calculated field with VAT
    unit_price_with_vat: Optional[float] = Field(None, description="Unit price with VAT")

    class Config:
        from_attributes = True
