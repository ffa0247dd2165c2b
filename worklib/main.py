"""
Main FastAPI application entry point.
Work Library API Server - materials, labor and composite works costing
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worklib.config import settings
from worklib.database import init_database, upgrade_database
from worklib.routers import (
    works_router,
    materials_router,
    labor_router,
    categories_router,
    library_router,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger('main')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting Work Library API Server...")
    await init_database()
    await upgrade_database()
    logger.info("Database initialized and upgraded")
    yield
    # Shutdown
    logger.info("Shutting down Work Library API Server...")


# Create FastAPI application
app = FastAPI(
    title="Work Library API",
    description="API de la bibliothèque d'ouvrages : fournitures, main d'œuvre et ouvrages composés",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(categories_router)
app.include_router(materials_router)
app.include_router(labor_router)
app.include_router(works_router)
app.include_router(library_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Work Library API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# For running with uvicorn directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "worklib.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True
    )
