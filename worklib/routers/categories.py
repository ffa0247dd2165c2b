"""API Router for Work Categories."""
import logging
from typing import List

from fastapi import APIRouter, HTTPException

from worklib.database import get_db, now_str
from worklib.models.category import CategoryCreate, CategoryUpdate, CategoryResponse

logger = logging.getLogger('categories_router')
router = APIRouter(prefix="/api/categories", tags=["categories"])

CATEGORY_COLUMNS = "id, name, description, parent_id, position, created_date"


def _category_row_to_response(row) -> CategoryResponse:
    return CategoryResponse(
        id=row['id'],
        name=row['name'],
        description=row['description'],
        parent_id=row['parent_id'],
        position=row['position'] or 0,
        created_date=row['created_date'],
    )


async def _ensure_parent(db, parent_id, category_id=None):
    if parent_id is None:
        return
    if parent_id == category_id:
        raise HTTPException(400, "Category cannot be its own parent")
    async with db.execute("SELECT id FROM categories WHERE id = ?", (parent_id,)) as cursor:
        if not await cursor.fetchone():
            raise HTTPException(400, "Parent category not found")
    if category_id is None:
        return

    # Walk up from the new parent; meeting the category itself means a loop
    ancestor = parent_id
    seen = set()
    while ancestor is not None and ancestor not in seen:
        if ancestor == category_id:
            raise HTTPException(400, "Category cannot be moved under one of its sub-categories")
        seen.add(ancestor)
        async with db.execute(
            "SELECT parent_id FROM categories WHERE id = ?", (ancestor,)
        ) as cursor:
            row = await cursor.fetchone()
        ancestor = row['parent_id'] if row else None


@router.get("", response_model=List[CategoryResponse])
async def get_categories():
    """Get all categories."""
    async with get_db() as db:
        async with db.execute(
            f"SELECT {CATEGORY_COLUMNS} FROM categories ORDER BY position, name"
        ) as cursor:
            rows = await cursor.fetchall()
            return [_category_row_to_response(row) for row in rows]


@router.get("/roots", response_model=List[CategoryResponse])
async def get_root_categories():
    """Get top-level categories."""
    async with get_db() as db:
        async with db.execute(
            f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE parent_id IS NULL ORDER BY position, name"
        ) as cursor:
            rows = await cursor.fetchall()
            return [_category_row_to_response(row) for row in rows]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int):
    """Get a specific category by ID."""
    async with get_db() as db:
        async with db.execute(
            f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE id = ?",
            (category_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if not row:
                raise HTTPException(404, "Category not found")
            return _category_row_to_response(row)


@router.post("", response_model=CategoryResponse)
async def create_category(category: CategoryCreate):
    """Create a new category."""
    async with get_db() as db:
        await _ensure_parent(db, category.parent_id)
        try:
            cursor = await db.execute("""
                INSERT INTO categories (name, description, parent_id, position, created_date)
                VALUES (?, ?, ?, ?, ?)
            """, (category.name.strip(), category.description, category.parent_id,
                  category.position, now_str()))
            await db.commit()
            category_id = cursor.lastrowid
            logger.info(f"Created category: {category.name} (ID: {category_id})")
        except Exception as e:
            if "UNIQUE constraint failed" in str(e):
                raise HTTPException(400, "Category with this name already exists")
            raise HTTPException(500, str(e))
    return await get_category(category_id)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: int, category: CategoryUpdate):
    """Update an existing category."""
    async with get_db() as db:
        async with db.execute("SELECT id FROM categories WHERE id = ?", (category_id,)) as cursor:
            if not await cursor.fetchone():
                raise HTTPException(404, "Category not found")

        update_fields = []
        values = []

        if category.name is not None:
            update_fields.append("name = ?")
            values.append(category.name.strip())
        if category.description is not None:
            update_fields.append("description = ?")
            values.append(category.description)
        if category.parent_id is not None:
            await _ensure_parent(db, category.parent_id, category_id)
            update_fields.append("parent_id = ?")
            values.append(category.parent_id)
        if category.position is not None:
            update_fields.append("position = ?")
            values.append(category.position)

        if not update_fields:
            raise HTTPException(400, "No fields to update")

        values.append(category_id)
        try:
            await db.execute(f"UPDATE categories SET {', '.join(update_fields)} WHERE id = ?", values)
            await db.commit()
            logger.info(f"Updated category ID: {category_id}")
        except Exception as e:
            if "UNIQUE constraint failed" in str(e):
                raise HTTPException(400, "Category with this name already exists")
            raise HTTPException(500, str(e))
    return await get_category(category_id)


@router.delete("/{category_id}")
async def delete_category(category_id: int):
    """Delete a category."""
    async with get_db() as db:
        # Check if category is used
        async with db.execute(
            "SELECT COUNT(*) as cnt FROM works WHERE category_id = ?", (category_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row and row['cnt'] > 0:
                raise HTTPException(
                    400,
                    f"Cannot delete category: {row['cnt']} works are using this category"
                )

        # Sub-categories move up to the root
        await db.execute("UPDATE categories SET parent_id = NULL WHERE parent_id = ?", (category_id,))

        cursor = await db.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        await db.commit()

        if cursor.rowcount == 0:
            raise HTTPException(404, "Category not found")

        logger.info(f"Deleted category ID: {category_id}")
        return {"message": "Category deleted successfully"}
