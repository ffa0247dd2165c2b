"""
Database module for the Work Library service.
Provides async SQLite connection and initialization functions.
"""
import aiosqlite
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

from worklib.config import settings

logger = logging.getLogger('database')


def now_str() -> str:
    """Timestamp format used for every date column."""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


@asynccontextmanager
async def get_db() -> AsyncGenerator[aiosqlite.Connection, None]:
    """
    Async context manager for database connections.

    Usage:
        async with get_db() as db:
            async with db.execute("SELECT * FROM works") as cursor:
                rows = await cursor.fetchall()
    """
    db = await aiosqlite.connect(settings.DATABASE_PATH)
    db.row_factory = aiosqlite.Row
    try:
        yield db
    finally:
        await db.close()


async def init_database():
    """Initialize all database tables."""
    async with get_db() as db:
        # Work categories, nested through parent_id
        await db.execute('''
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                description TEXT,
                parent_id INTEGER,
                position INTEGER NOT NULL DEFAULT 0,
                created_date TEXT NOT NULL,
                FOREIGN KEY (parent_id) REFERENCES categories (id)
            )
        ''')

        # Materials (fournitures)
        await db.execute('''
            CREATE TABLE IF NOT EXISTS materials (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                reference TEXT,
                name TEXT NOT NULL,
                description TEXT,
                unit TEXT NOT NULL,
                unit_price REAL NOT NULL DEFAULT 0,
                vat_rate REAL NOT NULL DEFAULT 20,
                supplier TEXT,
                category TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        # Labor (main d'oeuvre)
        await db.execute('''
            CREATE TABLE IF NOT EXISTS labor (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                unit TEXT NOT NULL DEFAULT 'h',
                unit_price REAL NOT NULL DEFAULT 0,
                category TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        # Works (ouvrages) with cached pricing
        await db.execute('''
            CREATE TABLE IF NOT EXISTS works (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                reference TEXT,
                name TEXT NOT NULL,
                description TEXT,
                category_id INTEGER,
                unit TEXT NOT NULL,
                margin REAL,
                is_custom INTEGER NOT NULL DEFAULT 0,
                labor_cost REAL NOT NULL DEFAULT 0,
                material_cost REAL NOT NULL DEFAULT 0,
                sub_works_cost REAL NOT NULL DEFAULT 0,
                total_cost REAL NOT NULL DEFAULT 0,
                recommended_price REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                priced_at TEXT,
                FOREIGN KEY (category_id) REFERENCES categories (id)
            )
        ''')

        # Work components, ordered by position
        await db.execute('''
            CREATE TABLE IF NOT EXISTS work_components (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                work_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                kind TEXT NOT NULL,
                ref_id INTEGER NOT NULL,
                quantity REAL NOT NULL,
                FOREIGN KEY (work_id) REFERENCES works(id) ON DELETE CASCADE
            )
        ''')

        await db.execute('''
            CREATE INDEX IF NOT EXISTS idx_work_components_ref
            ON work_components (kind, ref_id)
        ''')

        await db.commit()
        logger.info("Database initialized successfully")


async def upgrade_database():
    """Add new columns to existing tables if needed."""
    async with get_db() as db:
        async with db.execute("PRAGMA table_info(works)") as cursor:
            columns = [row[1] for row in await cursor.fetchall()]

        if 'sub_works_cost' not in columns:
            await db.execute('ALTER TABLE works ADD COLUMN sub_works_cost REAL NOT NULL DEFAULT 0')
            logger.info("Added sub_works_cost column to works table")

        if 'priced_at' not in columns:
            await db.execute('ALTER TABLE works ADD COLUMN priced_at TEXT')
            logger.info("Added priced_at column to works table")

        async with db.execute("PRAGMA table_info(categories)") as cursor:
            columns = [row[1] for row in await cursor.fetchall()]

        if 'parent_id' not in columns:
            await db.execute('ALTER TABLE categories ADD COLUMN parent_id INTEGER')
            logger.info("Added parent_id column to categories table")

        if 'position' not in columns:
            await db.execute('ALTER TABLE categories ADD COLUMN position INTEGER NOT NULL DEFAULT 0')
            logger.info("Added position column to categories table")

        await db.commit()
        logger.info("Database upgrade completed")
