"""Pydantic models for Works (ouvrages)."""
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

ComponentKind = Literal['material', 'labor', 'work']


class WorkComponent(BaseModel):
    """
    One line of a work's bill of materials.

    `kind` names the catalog `id` points into. Components submitted without a
    kind are classified once, when the work is saved.
    """
    kind: Optional[ComponentKind] = Field(None, description="Catalog the id refers to")
    id: int = Field(..., description="Material, labor or sub-work ID")
    quantity: float = Field(..., gt=0, description="Quantity per work unit")


class WorkBase(BaseModel):
    """Base model for Work."""
    reference: Optional[str] = Field(None, max_length=100, description="Reference code")
    name: str = Field(..., min_length=1, max_length=255, description="Work name")
    description: Optional[str] = Field(None, description="Work description")
    category_id: Optional[int] = Field(None, description="Category ID")
    unit: str = Field(..., min_length=1, max_length=50, description="Unit of measurement")
    margin: Optional[float] = Field(None, ge=0, description="Margin in percent, default applies when unset")
    is_custom: bool = Field(default=False, description="Custom work rather than a standard one")


class WorkCreate(WorkBase):
    """Model for creating a new work."""
    components: List[WorkComponent] = Field(default=[], description="Ordered components")


class WorkUpdate(BaseModel):
    """Model for updating an existing work."""
    reference: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[int] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    margin: Optional[float] = Field(None, ge=0)
    is_custom: Optional[bool] = None
    components: Optional[List[WorkComponent]] = None


class Work(WorkBase):
    """Work with its components and cached pricing."""
    id: int = Field(..., description="Work ID")
    components: List[WorkComponent] = Field(default=[], description="Ordered components")

    # Derived from components, recomputed on save
    labor_cost: float = Field(default=0, description="Labor cost")
    material_cost: float = Field(default=0, description="Material cost")
    sub_works_cost: float = Field(default=0, description="Sub-works cost at their sale price")
    total_cost: float = Field(default=0, description="Raw cost base (deboursé sec)")
    recommended_price: float = Field(default=0, description="Total cost plus margin")

    created_at: Optional[str] = Field(None, description="Creation date")
    updated_at: Optional[str] = Field(None, description="Last update date")
    priced_at: Optional[str] = Field(None, description="Date the derived costs were last computed")

    class Config:
        from_attributes = True
