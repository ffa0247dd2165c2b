"""Pytest configuration and fixtures."""
import os
import tempfile
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Set test environment before importing app
os.environ['DATABASE_PATH'] = ':memory:'
os.environ['CORS_ORIGINS'] = 'http://localhost'
os.environ['DEFAULT_MARGIN'] = '20'

from worklib.main import app
from worklib.database import init_database


@pytest_asyncio.fixture
async def test_db():
    """Initialize test database."""
    # Create a temp file for SQLite
    fd, path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    os.environ['DATABASE_PATH'] = path

    # Import settings after setting env var
    from worklib.config import settings
    settings.DATABASE_PATH = path

    await init_database()
    yield path

    # Cleanup
    try:
        os.unlink(path)
    except OSError:
        pass


@pytest_asyncio.fixture
async def client(test_db) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_material_data():
    """Sample material data for tests."""
    return {
        "reference": "CIM-35",
        "name": "Ciment CEM II 35kg",
        "unit": "sac",
        "unit_price": 100.0,
        "vat_rate": 20.0,
        "supplier": "Point P",
        "category": "Gros œuvre",
    }


@pytest.fixture
def sample_labor_data():
    """Sample labor data for tests."""
    return {
        "name": "Maçon qualifié",
        "unit": "h",
        "unit_price": 200.0,
        "category": "Gros œuvre",
    }


@pytest.fixture
def sample_work_data():
    """Sample work data for tests, without components."""
    return {
        "reference": "OUV-001",
        "name": "Chape ciment",
        "unit": "m²",
        "margin": 20.0,
        "components": [],
    }


@pytest.fixture
def sample_category_data():
    """Sample category data for tests."""
    return {
        "name": "Maçonnerie"
    }
