"""Database access shared by the library routers."""
import logging
from typing import Dict, List, Optional

import aiosqlite

from worklib.config import settings
from worklib.database import now_str
from worklib.models.labor import Labor
from worklib.models.material import Material
from worklib.models.work import Work, WorkComponent
from worklib.services.catalog import Catalog

logger = logging.getLogger('library_store')

MATERIAL_COLUMNS = """
    id, reference, name, description, unit, unit_price, vat_rate,
    supplier, category, created_at, updated_at
"""

LABOR_COLUMNS = """
    id, name, description, unit, unit_price, category, created_at, updated_at
"""

WORK_COLUMNS = """
    id, reference, name, description, category_id, unit, margin, is_custom,
    labor_cost, material_cost, sub_works_cost, total_cost, recommended_price,
    created_at, updated_at, priced_at
"""


def material_from_row(row) -> Material:
    """Convert database row to a Material."""
    unit_price = row['unit_price'] or 0
    vat_rate = row['vat_rate'] if row['vat_rate'] is not None else settings.DEFAULT_VAT_RATE
    return Material(
        id=row['id'],
        reference=row['reference'],
        name=row['name'],
        description=row['description'],
        unit=row['unit'],
        unit_price=unit_price,
        vat_rate=vat_rate,
        supplier=row['supplier'],
        category=row['category'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
        unit_price_with_vat=round(unit_price * (1 + vat_rate / 100), 2),
    )


def labor_from_row(row) -> Labor:
    """Convert database row to a Labor entry."""
    return Labor(
        id=row['id'],
        name=row['name'],
        description=row['description'],
        unit=row['unit'] or 'h',
        unit_price=row['unit_price'] or 0,
        category=row['category'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def work_from_row(row, components: List[WorkComponent]) -> Work:
    """Convert database row and its component rows to a Work."""
    return Work(
        id=row['id'],
        reference=row['reference'],
        name=row['name'],
        description=row['description'],
        category_id=row['category_id'],
        unit=row['unit'],
        margin=row['margin'],
        is_custom=bool(row['is_custom']),
        components=components,
        labor_cost=row['labor_cost'] or 0,
        material_cost=row['material_cost'] or 0,
        sub_works_cost=row['sub_works_cost'] or 0,
        total_cost=row['total_cost'] or 0,
        recommended_price=row['recommended_price'] or 0,
        created_at=row['created_at'],
        updated_at=row['updated_at'],
        priced_at=row['priced_at'],
    )


def _component_from_row(row) -> WorkComponent:
    return WorkComponent(kind=row['kind'], id=row['ref_id'], quantity=row['quantity'])


async def fetch_components(db: aiosqlite.Connection, work_id: int) -> List[WorkComponent]:
    async with db.execute("""
        SELECT kind, ref_id, quantity FROM work_components
        WHERE work_id = ? ORDER BY position
    """, (work_id,)) as cursor:
        return [_component_from_row(row) for row in await cursor.fetchall()]


async def fetch_all_components(db: aiosqlite.Connection) -> Dict[int, List[WorkComponent]]:
    components: Dict[int, List[WorkComponent]] = {}
    async with db.execute("""
        SELECT work_id, kind, ref_id, quantity FROM work_components
        ORDER BY work_id, position
    """) as cursor:
        for row in await cursor.fetchall():
            components.setdefault(row['work_id'], []).append(_component_from_row(row))
    return components


async def fetch_work(db: aiosqlite.Connection, work_id: int) -> Optional[Work]:
    async with db.execute(
        f"SELECT {WORK_COLUMNS} FROM works WHERE id = ?", (work_id,)
    ) as cursor:
        row = await cursor.fetchone()
    if not row:
        return None
    return work_from_row(row, await fetch_components(db, work_id))


async def fetch_works(db: aiosqlite.Connection) -> List[Work]:
    components = await fetch_all_components(db)
    async with db.execute(f"SELECT {WORK_COLUMNS} FROM works ORDER BY name") as cursor:
        rows = await cursor.fetchall()
    return [work_from_row(row, components.get(row['id'], [])) for row in rows]


async def load_catalog(db: aiosqlite.Connection) -> Catalog:
    """Load a snapshot of the three catalogs."""
    async with db.execute(f"SELECT {MATERIAL_COLUMNS} FROM materials") as cursor:
        materials = [material_from_row(row) for row in await cursor.fetchall()]
    async with db.execute(f"SELECT {LABOR_COLUMNS} FROM labor") as cursor:
        labor = [labor_from_row(row) for row in await cursor.fetchall()]
    works = await fetch_works(db)
    return Catalog.from_lists(materials, labor, works)


async def save_components(db: aiosqlite.Connection, work_id: int,
                          components: List[WorkComponent]):
    """Replace all components of a work. Components must already carry a kind."""
    await db.execute("DELETE FROM work_components WHERE work_id = ?", (work_id,))
    for position, component in enumerate(components):
        await db.execute("""
            INSERT INTO work_components (work_id, position, kind, ref_id, quantity)
            VALUES (?, ?, ?, ?, ?)
        """, (work_id, position, component.kind, component.id, component.quantity))


async def save_pricing(db: aiosqlite.Connection, work: Work) -> Work:
    """Store the cached cost fields of a priced work and return it stamped with `priced_at`."""
    priced_at = now_str()
    await db.execute("""
        UPDATE works
        SET labor_cost = ?, material_cost = ?, sub_works_cost = ?,
            total_cost = ?, recommended_price = ?, priced_at = ?
        WHERE id = ?
    """, (work.labor_cost, work.material_cost, work.sub_works_cost,
          work.total_cost, work.recommended_price, priced_at, work.id))
    return work.model_copy(update={'priced_at': priced_at})


async def find_referencing_works(db: aiosqlite.Connection, kind: str,
                                 ref_id: int) -> List[dict]:
    """Works whose components point at the given catalog entry."""
    async with db.execute("""
        SELECT DISTINCT w.id, w.name
        FROM work_components wc
        JOIN works w ON w.id = wc.work_id
        WHERE wc.kind = ? AND wc.ref_id = ?
        ORDER BY w.name
    """, (kind, ref_id)) as cursor:
        return [{'id': row['id'], 'name': row['name']} for row in await cursor.fetchall()]
