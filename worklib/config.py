"""
Configuration module for the Work Library service.
Loads settings from environment variables.
"""
import os
from typing import List
from pathlib import Path

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_PATH: str = os.getenv('DATABASE_PATH', str(BASE_DIR / 'worklib.db'))

    # API Server
    API_HOST: str = os.getenv('API_HOST', '127.0.0.1')
    API_PORT: int = int(os.getenv('API_PORT', '8000'))

    # CORS
    CORS_ORIGINS: List[str] = os.getenv('CORS_ORIGINS', 'http://localhost:5173').split(',')

    # Pricing
    DEFAULT_MARGIN: float = float(os.getenv('DEFAULT_MARGIN', '20'))
    DEFAULT_VAT_RATE: float = float(os.getenv('DEFAULT_VAT_RATE', '20'))

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')


# Global settings instance
settings = Settings()
