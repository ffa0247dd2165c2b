"""API Routers for the Work Library service."""
from worklib.routers.works import router as works_router
from worklib.routers.materials import router as materials_router
from worklib.routers.labor import router as labor_router
from worklib.routers.categories import router as categories_router
from worklib.routers.library import router as library_router

__all__ = [
    'works_router',
    'materials_router',
    'labor_router',
    'categories_router',
    'library_router',
]
