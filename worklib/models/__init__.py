"""Pydantic models for request/response validation."""
from worklib.models.work import Work, WorkComponent, WorkCreate, WorkUpdate
from worklib.models.material import Material, MaterialCreate, MaterialUpdate
from worklib.models.labor import Labor, LaborCreate, LaborUpdate
from worklib.models.category import CategoryCreate, CategoryUpdate, CategoryResponse
from worklib.models.costing import CostBreakdown, ComponentRow
from worklib.models.library import LibraryItem

__all__ = [
    'Work', 'WorkComponent', 'WorkCreate', 'WorkUpdate',
    'Material', 'MaterialCreate', 'MaterialUpdate',
    'Labor', 'LaborCreate', 'LaborUpdate',
    'CategoryCreate', 'CategoryUpdate', 'CategoryResponse',
    'CostBreakdown', 'ComponentRow',
    'LibraryItem',
]
