"""Pydantic models for cost breakdowns and composition rows."""
from pydantic import BaseModel, Field
from typing import List, Literal

from worklib.models.work import WorkComponent

ResolvedKind = Literal['material', 'labor', 'work', 'unknown']


class CostBreakdown(BaseModel):
    """Cost rollup of one work against a catalog snapshot. Values are not rounded."""
    material_cost: float = 0.0
    labor_cost: float = 0.0
    sub_works_cost: float = 0.0
    total_cost: float = 0.0
    margin: float = 0.0
    margin_amount: float = 0.0
    recommended_price: float = 0.0
    material_percentage: float = 0.0
    labor_percentage: float = 0.0
    sub_works_percentage: float = 0.0
    unknown_components: List[int] = Field(default=[], description="Component ids found in no catalog")


class ComponentRow(BaseModel):
    """One visible row of a flattened work composition."""
    handle: int = Field(..., description="Node handle in the composition tree")
    component: WorkComponent
    depth: int = 0
    kind: ResolvedKind
    name: str
    price: float = Field(0.0, description="Unit price, or recommended price for a sub-work")
    unit: str = ""
    expandable: bool = False
    expanded: bool = False
    cyclic: bool = False
