"""API Router for Works."""
import io
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font

from worklib.config import settings
from worklib.database import get_db, now_str
from worklib.models.costing import ComponentRow, CostBreakdown
from worklib.models.library import TYPE_LABELS
from worklib.models.work import Work, WorkComponent, WorkCreate, WorkUpdate
from worklib.services.catalog import Catalog, UNKNOWN_NAME, classify_component_id
from worklib.services.composition import CompositionTree, find_cycle, get_all_components
from worklib.services.costing import calculate_costs, price_work, reprice_all
from worklib.services.library_store import (
    WORK_COLUMNS, fetch_all_components, fetch_work, find_referencing_works,
    load_catalog, save_components, save_pricing, work_from_row
)

logger = logging.getLogger('works_router')
router = APIRouter(prefix="/api/works", tags=["works"])

# Also the column names, so safe to format into ORDER BY
SortField = Literal['name', 'reference', 'total_cost', 'recommended_price']

REQUIRED_FIELDS = ('name', 'unit', 'is_custom')


def _prepare_components(components: List[WorkComponent], catalog: Catalog,
                        work_id: Optional[int] = None) -> List[WorkComponent]:
    """Tag every component with its kind and reject dangling references and cycles."""
    prepared = []
    for component in components:
        kind = component.kind or classify_component_id(component.id, catalog)
        if kind is None or catalog.lookup(kind, component.id) is None:
            raise HTTPException(
                400, f"Unknown component reference: {component.kind or 'any'} #{component.id}"
            )
        prepared.append(component.model_copy(update={'kind': kind}))

    cycle = find_cycle(work_id, prepared, catalog)
    if cycle:
        path = " -> ".join(str(i) for i in cycle)
        logger.warning(f"Rejected cyclic composition for work {work_id}: {path}")
        raise HTTPException(400, f"Cyclic composition: {path}")
    return prepared


async def _reprice(db, work_id: int) -> Work:
    """Recompute and store the cached cost fields of one work."""
    catalog = await load_catalog(db)
    work = catalog.works.get(work_id)
    if work is None:
        raise HTTPException(404, "Work not found")
    priced = await save_pricing(db, price_work(work, catalog, settings.DEFAULT_MARGIN))
    await db.commit()
    return priced


async def _get_work_or_404(db, work_id: int) -> Work:
    work = await fetch_work(db, work_id)
    if work is None:
        raise HTTPException(404, "Work not found")
    return work


@router.get("", response_model=List[Work])
async def get_works(
    query: Optional[str] = None,
    category_id: Optional[int] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sort_by: SortField = 'name',
    sort_order: Literal['asc', 'desc'] = 'asc',
):
    """Get works matching the search filters. Prices filter on the recommended price."""
    clauses = []
    params = []
    if query:
        clauses.append("(name LIKE ? OR reference LIKE ? OR description LIKE ?)")
        params.extend([f"%{query}%"] * 3)
    if category_id is not None:
        clauses.append("category_id = ?")
        params.append(category_id)
    if min_price is not None:
        clauses.append("recommended_price >= ?")
        params.append(min_price)
    if max_price is not None:
        clauses.append("recommended_price <= ?")
        params.append(max_price)

    sql = f"SELECT {WORK_COLUMNS} FROM works"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += f" ORDER BY {sort_by} {sort_order.upper()}, id"

    async with get_db() as db:
        components = await fetch_all_components(db)
        async with db.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        return [work_from_row(row, components.get(row['id'], [])) for row in rows]


@router.post("/recalculate")
async def recalculate_all_works():
    """Refresh the cached prices of every work, sub-works before their parents."""
    async with get_db() as db:
        catalog = await load_catalog(db)
        priced = reprice_all(catalog, settings.DEFAULT_MARGIN)
        for work in priced:
            await save_pricing(db, work)
        await db.commit()

    logger.info(f"Recalculated {len(priced)} works")
    return {"recalculated": len(priced)}


@router.get("/{work_id}", response_model=Work)
async def get_work(work_id: int):
    """Get a specific work by ID."""
    async with get_db() as db:
        return await _get_work_or_404(db, work_id)


@router.post("", response_model=Work)
async def create_work(work: WorkCreate):
    """Create a new work and price it against the current catalog."""
    async with get_db() as db:
        catalog = await load_catalog(db)
        components = _prepare_components(work.components, catalog)

        timestamp = now_str()
        cursor = await db.execute("""
            INSERT INTO works (reference, name, description, category_id, unit, margin,
                               is_custom, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (work.reference, work.name, work.description, work.category_id, work.unit,
              work.margin, int(work.is_custom), timestamp, timestamp))
        work_id = cursor.lastrowid
        await save_components(db, work_id, components)
        await db.commit()
        logger.info(f"Created work: {work.name} (ID: {work_id})")

        return await _reprice(db, work_id)


@router.put("/{work_id}", response_model=Work)
async def update_work(work_id: int, work: WorkUpdate):
    """
    Update an existing work.

    Cost fields are never taken from the request: they are recomputed from
    the components after every update.
    """
    async with get_db() as db:
        await _get_work_or_404(db, work_id)

        # An explicit null clears nullable fields, e.g. margin back to the default
        fields = work.model_dump(exclude_unset=True, exclude={'components'})
        if not fields and work.components is None:
            raise HTTPException(400, "No fields to update")
        for name in REQUIRED_FIELDS:
            if name in fields and fields[name] is None:
                raise HTTPException(400, f"{name} cannot be null")

        if work.components is not None:
            catalog = await load_catalog(db)
            components = _prepare_components(work.components, catalog, work_id)
            await save_components(db, work_id, components)

        if 'is_custom' in fields:
            fields['is_custom'] = int(fields['is_custom'])
        update_fields = [f"{name} = ?" for name in fields]
        values = list(fields.values())
        update_fields.append("updated_at = ?")
        values.append(now_str())
        values.append(work_id)

        await db.execute(f"UPDATE works SET {', '.join(update_fields)} WHERE id = ?", values)
        await db.commit()
        logger.info(f"Updated work ID: {work_id}")

        return await _reprice(db, work_id)


@router.delete("/{work_id}")
async def delete_work(work_id: int):
    """Delete a work that is not used as a sub-work."""
    async with get_db() as db:
        users = await find_referencing_works(db, 'work', work_id)
        if users:
            logger.warning(f"Refused to delete work {work_id}: used by {len(users)} works")
            raise HTTPException(409, {"message": "Work is used as a sub-work", "works": users})

        await db.execute("DELETE FROM work_components WHERE work_id = ?", (work_id,))
        cursor = await db.execute("DELETE FROM works WHERE id = ?", (work_id,))
        await db.commit()

        if cursor.rowcount == 0:
            raise HTTPException(404, "Work not found")

        logger.info(f"Deleted work ID: {work_id}")
        return {"message": "Work deleted successfully"}


@router.get("/{work_id}/costs", response_model=CostBreakdown)
async def get_work_costs(work_id: int):
    """Cost breakdown of a work against the current catalog prices."""
    async with get_db() as db:
        catalog = await load_catalog(db)
    work = catalog.works.get(work_id)
    if work is None:
        raise HTTPException(404, "Work not found")
    return calculate_costs(work, catalog, settings.DEFAULT_MARGIN)


@router.get("/{work_id}/components", response_model=List[ComponentRow])
async def get_work_components(work_id: int, expanded: List[int] = Query(default=[])):
    """Flattened composition, with the sub-works listed in `expanded` opened."""
    async with get_db() as db:
        catalog = await load_catalog(db)
    work = catalog.works.get(work_id)
    if work is None:
        raise HTTPException(404, "Work not found")
    return get_all_components(work, catalog, expanded)


@router.post("/{work_id}/recalculate", response_model=Work)
async def recalculate_work(work_id: int):
    """Refresh the cached prices of one work."""
    async with get_db() as db:
        priced = await _reprice(db, work_id)
    logger.info(f"Recalculated work ID: {work_id}")
    return priced


@router.get("/{work_id}/export")
async def export_work(work_id: int):
    """Export the full composition and cost summary of a work to Excel."""
    async with get_db() as db:
        catalog = await load_catalog(db)
    work = catalog.works.get(work_id)
    if work is None:
        raise HTTPException(404, "Work not found")

    tree = CompositionTree.build(work, catalog)
    tree.expand_all()
    costs = calculate_costs(work, catalog, settings.DEFAULT_MARGIN)

    wb = Workbook()
    ws = wb.active
    ws.title = "Composition"

    ws.append([work.name, work.reference or '', work.unit])
    ws['A1'].font = Font(bold=True)
    ws.append([])
    ws.append(['Niveau', 'Type', 'Désignation', 'Unité', 'Quantité', 'Prix unitaire', 'Total'])

    for row in tree.flatten():
        ws.append([
            row.depth,
            TYPE_LABELS.get(row.kind, UNKNOWN_NAME),
            "    " * row.depth + row.name,
            row.unit,
            row.component.quantity,
            round(row.price, 2),
            round(row.price * row.component.quantity, 2),
        ])

    ws.append([])
    summary = [
        ('Matériaux', costs.material_cost),
        ("Main d'œuvre", costs.labor_cost),
        ('Sous-ouvrages', costs.sub_works_cost),
        ('Déboursé sec', costs.total_cost),
        ('Marge (%)', costs.margin),
        ('Montant marge', costs.margin_amount),
        ('Prix recommandé', costs.recommended_price),
    ]
    for label, value in summary:
        ws.append(['', '', label, '', '', '', round(value, 2)])

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=work_{work_id}.xlsx"}
    )
