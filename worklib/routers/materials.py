"""API Router for Materials."""
import logging
from typing import List, Optional
import io
from zipfile import BadZipFile

from fastapi import APIRouter, HTTPException, UploadFile, File
from fastapi.responses import StreamingResponse
from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from worklib.config import settings
from worklib.database import get_db, now_str
from worklib.models.material import Material, MaterialCreate, MaterialUpdate
from worklib.services.library_store import (
    MATERIAL_COLUMNS, material_from_row, find_referencing_works
)

logger = logging.getLogger('materials_router')
router = APIRouter(prefix="/api/materials", tags=["materials"])

EXPORT_HEADERS = ['ID', 'Référence', 'Nom', 'Description', 'Unité',
                  'Prix unitaire HT', 'TVA (%)', 'Fournisseur', 'Catégorie']


@router.get("", response_model=List[Material])
async def get_materials(search: Optional[str] = None):
    """Get all materials, optionally filtered by name or reference."""
    async with get_db() as db:
        query = f"SELECT {MATERIAL_COLUMNS} FROM materials"
        params = []
        if search:
            query += " WHERE name LIKE ? OR reference LIKE ?"
            params = [f"%{search}%", f"%{search}%"]
        query += " ORDER BY category, name"

        async with db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [material_from_row(row) for row in rows]


@router.get("/export")
async def export_materials():
    """Export materials to Excel file."""
    materials = await get_materials()

    wb = Workbook()
    ws = wb.active
    ws.title = "Fournitures"
    ws.append(EXPORT_HEADERS)

    for m in materials:
        ws.append([
            m.id, m.reference, m.name, m.description, m.unit,
            m.unit_price, m.vat_rate, m.supplier, m.category
        ])

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=materials_export.xlsx"}
    )


@router.post("/import")
async def import_materials(file: UploadFile = File(...)):
    """
    Import materials from an Excel file laid out like the export.

    Rows with an ID matching an existing material update it, other rows are
    inserted.
    """
    if not file.filename.endswith('.xlsx'):
        raise HTTPException(400, "File must be Excel format (.xlsx)")

    contents = await file.read()
    try:
        wb = load_workbook(io.BytesIO(contents))
    except (InvalidFileException, BadZipFile) as e:
        logger.warning(f"Rejected unreadable import file {file.filename}: {e}")
        raise HTTPException(400, "File is not a readable Excel workbook")
    ws = wb.active

    imported = 0
    errors = []

    async with get_db() as db:
        for idx, row in enumerate(ws.iter_rows(min_row=2, values_only=True), start=2):
            if not row or len(row) < 3 or not row[2]:
                continue

            try:
                row = list(row) + [None] * (len(EXPORT_HEADERS) - len(row))
                material_id = int(row[0]) if row[0] else None
                data = MaterialCreate(
                    reference=str(row[1]).strip() if row[1] else None,
                    name=str(row[2]).strip(),
                    description=row[3],
                    unit=str(row[4] or 'u').strip(),
                    unit_price=float(row[5] or 0),
                    vat_rate=float(row[6]) if row[6] is not None else settings.DEFAULT_VAT_RATE,
                    supplier=row[7],
                    category=row[8],
                )
                timestamp = now_str()

                cursor = None
                if material_id is not None:
                    cursor = await db.execute("""
                        UPDATE materials
                        SET reference = ?, name = ?, description = ?, unit = ?, unit_price = ?,
                            vat_rate = ?, supplier = ?, category = ?, updated_at = ?
                        WHERE id = ?
                    """, (data.reference, data.name, data.description, data.unit, data.unit_price,
                          data.vat_rate, data.supplier, data.category, timestamp, material_id))

                if cursor is None or cursor.rowcount == 0:
                    await db.execute("""
                        INSERT INTO materials (reference, name, description, unit, unit_price,
                                               vat_rate, supplier, category, created_at, updated_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (data.reference, data.name, data.description, data.unit, data.unit_price,
                          data.vat_rate, data.supplier, data.category, timestamp, timestamp))
                imported += 1
            except Exception as e:
                errors.append(f"Row {idx}: {str(e)}")

        await db.commit()

    logger.info(f"Imported {imported} materials ({len(errors)} errors)")
    return {"imported": imported, "errors": errors}


@router.get("/{material_id}", response_model=Material)
async def get_material(material_id: int):
    """Get a specific material by ID."""
    async with get_db() as db:
        async with db.execute(
            f"SELECT {MATERIAL_COLUMNS} FROM materials WHERE id = ?", (material_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if not row:
                raise HTTPException(404, "Material not found")
            return material_from_row(row)


@router.post("", response_model=Material)
async def create_material(material: MaterialCreate):
    """Create a new material."""
    async with get_db() as db:
        timestamp = now_str()
        cursor = await db.execute("""
            INSERT INTO materials (reference, name, description, unit, unit_price,
                                   vat_rate, supplier, category, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (material.reference, material.name, material.description, material.unit,
              material.unit_price, material.vat_rate, material.supplier, material.category,
              timestamp, timestamp))
        await db.commit()

        material_id = cursor.lastrowid
        logger.info(f"Created material: {material.name} (ID: {material_id})")
    return await get_material(material_id)


@router.put("/{material_id}", response_model=Material)
async def update_material(material_id: int, material: MaterialUpdate):
    """
    Update an existing material.

    Works using the material keep their cached prices until they are
    recalculated.
    """
    async with get_db() as db:
        async with db.execute("SELECT id FROM materials WHERE id = ?", (material_id,)) as cursor:
            if not await cursor.fetchone():
                raise HTTPException(404, "Material not found")

        fields = material.model_dump(exclude_none=True)
        if not fields:
            raise HTTPException(400, "No fields to update")

        update_fields = [f"{name} = ?" for name in fields]
        values = list(fields.values())
        update_fields.append("updated_at = ?")
        values.append(now_str())
        values.append(material_id)

        await db.execute(f"UPDATE materials SET {', '.join(update_fields)} WHERE id = ?", values)
        await db.commit()
        logger.info(f"Updated material ID: {material_id}")
    return await get_material(material_id)


@router.delete("/{material_id}")
async def delete_material(material_id: int):
    """Delete a material that no work uses."""
    async with get_db() as db:
        users = await find_referencing_works(db, 'material', material_id)
        if users:
            logger.warning(f"Refused to delete material {material_id}: used by {len(users)} works")
            raise HTTPException(409, {"message": "Material is used by works", "works": users})

        cursor = await db.execute("DELETE FROM materials WHERE id = ?", (material_id,))
        await db.commit()

        if cursor.rowcount == 0:
            raise HTTPException(404, "Material not found")

        logger.info(f"Deleted material ID: {material_id}")
        return {"message": "Material deleted successfully"}
