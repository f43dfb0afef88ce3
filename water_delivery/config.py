"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Water Delivery Reconciliation"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/water_delivery"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Cash management
    CURRENCY: str = os.getenv("CURRENCY", "PKR")
    LARGE_DISCREPANCY_THRESHOLD: Decimal = Decimal(
        os.getenv("LARGE_DISCREPANCY_THRESHOLD", "500")
    )
    HANDOVER_TREND_DAYS: int = int(os.getenv("HANDOVER_TREND_DAYS", "30"))
    HANDOVER_HISTORY_LIMIT: int = int(os.getenv("HANDOVER_HISTORY_LIMIT", "10"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused for all
    subsequent calls.
    """
    return Settings()
