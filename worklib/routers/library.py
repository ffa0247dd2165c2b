"""API Router for the combined library (materials, labor and works)."""
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter

from worklib.database import get_db
from worklib.models.library import LibraryItem, TYPE_LABELS
from worklib.services.library_store import load_catalog

logger = logging.getLogger('library_router')
router = APIRouter(prefix="/api/library", tags=["library"])


def _matches(item: LibraryItem, search: str) -> bool:
    needle = search.lower()
    return any(
        value and needle in value.lower()
        for value in (item.name, item.reference, item.description)
    )


@router.get("", response_model=List[LibraryItem])
async def get_library_items(
    type: Literal['all', 'work', 'material', 'labor'] = 'all',
    search: Optional[str] = None,
):
    """All library items, optionally restricted to one type and a search term."""
    async with get_db() as db:
        catalog = await load_catalog(db)

    items = []
    for m in catalog.materials.values():
        items.append(LibraryItem(
            type='material', type_label=TYPE_LABELS['material'], id=m.id,
            reference=m.reference, name=m.name, description=m.description,
            unit=m.unit, price=m.unit_price, category=m.category,
        ))
    for l in catalog.labor.values():
        items.append(LibraryItem(
            type='labor', type_label=TYPE_LABELS['labor'], id=l.id,
            name=l.name, description=l.description,
            unit=l.unit, price=l.unit_price, category=l.category,
        ))
    for w in catalog.works.values():
        items.append(LibraryItem(
            type='work', type_label=TYPE_LABELS['work'], id=w.id,
            reference=w.reference, name=w.name, description=w.description,
            unit=w.unit, price=w.recommended_price,
        ))

    if type != 'all':
        items = [item for item in items if item.type == type]
    if search:
        items = [item for item in items if _matches(item, search)]
    logger.debug(f"Library listing: {len(items)} items (type={type})")
    return items
