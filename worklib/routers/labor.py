"""API Router for Labor."""
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from worklib.database import get_db, now_str
from worklib.models.labor import Labor, LaborCreate, LaborUpdate
from worklib.services.library_store import LABOR_COLUMNS, labor_from_row, find_referencing_works

logger = logging.getLogger('labor_router')
router = APIRouter(prefix="/api/labor", tags=["labor"])


@router.get("", response_model=List[Labor])
async def get_labor(search: Optional[str] = None):
    """Get all labor entries, optionally filtered by name."""
    async with get_db() as db:
        query = f"SELECT {LABOR_COLUMNS} FROM labor"
        params = []
        if search:
            query += " WHERE name LIKE ?"
            params = [f"%{search}%"]
        query += " ORDER BY category, name"

        async with db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [labor_from_row(row) for row in rows]


@router.get("/{labor_id}", response_model=Labor)
async def get_labor_item(labor_id: int):
    """Get a specific labor entry by ID."""
    async with get_db() as db:
        async with db.execute(
            f"SELECT {LABOR_COLUMNS} FROM labor WHERE id = ?", (labor_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if not row:
                raise HTTPException(404, "Labor not found")
            return labor_from_row(row)


@router.post("", response_model=Labor)
async def create_labor(labor: LaborCreate):
    """Create a new labor entry."""
    async with get_db() as db:
        timestamp = now_str()
        cursor = await db.execute("""
            INSERT INTO labor (name, description, unit, unit_price, category, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (labor.name, labor.description, labor.unit, labor.unit_price, labor.category,
              timestamp, timestamp))
        await db.commit()

        labor_id = cursor.lastrowid
        logger.info(f"Created labor: {labor.name} (ID: {labor_id})")
    return await get_labor_item(labor_id)


@router.put("/{labor_id}", response_model=Labor)
async def update_labor(labor_id: int, labor: LaborUpdate):
    """Update an existing labor entry."""
    async with get_db() as db:
        async with db.execute("SELECT id FROM labor WHERE id = ?", (labor_id,)) as cursor:
            if not await cursor.fetchone():
                raise HTTPException(404, "Labor not found")

        fields = labor.model_dump(exclude_none=True)
        if not fields:
            raise HTTPException(400, "No fields to update")

        update_fields = [f"{name} = ?" for name in fields]
        values = list(fields.values())
        update_fields.append("updated_at = ?")
        values.append(now_str())
        values.append(labor_id)

        await db.execute(f"UPDATE labor SET {', '.join(update_fields)} WHERE id = ?", values)
        await db.commit()
        logger.info(f"Updated labor ID: {labor_id}")
    return await get_labor_item(labor_id)


@router.delete("/{labor_id}")
async def delete_labor(labor_id: int):
    """Delete a labor entry that no work uses."""
    async with get_db() as db:
        users = await find_referencing_works(db, 'labor', labor_id)
        if users:
            logger.warning(f"Refused to delete labor {labor_id}: used by {len(users)} works")
            raise HTTPException(409, {"message": "Labor is used by works", "works": users})

        cursor = await db.execute("DELETE FROM labor WHERE id = ?", (labor_id,))
        await db.commit()

        if cursor.rowcount == 0:
            raise HTTPException(404, "Labor not found")

        logger.info(f"Deleted labor ID: {labor_id}")
        return {"message": "Labor deleted successfully"}
