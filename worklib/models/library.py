"""Pydantic models for the combined library listing."""
from pydantic import BaseModel, Field
from typing import Literal, Optional

LibraryItemType = Literal['material', 'labor', 'work']

TYPE_LABELS = {
    'work': 'Ouvrage',
    'material': 'Matériau',
    'labor': "Main d'œuvre",
}


class LibraryItem(BaseModel):
    """Flat view of a material, labor entry or work."""
    type: LibraryItemType
    type_label: str
    id: int
    reference: Optional[str] = None
    name: str
    description: Optional[str] = None
    unit: str
    price: float = Field(..., description="Unit price, or recommended price for a work")
    category: Optional[str] = None
