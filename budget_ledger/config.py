from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Repository root (one level above the package)
_BACKEND_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Database: any SQLAlchemy URL; SQLite for local work, PostgreSQL in production
    DATABASE_URL: str = f"sqlite:///{_BACKEND_ROOT / 'budget_ledger.db'}"

    # App
    APP_NAME: str = "Budget Allocation Ledger"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # CORS: override with env var CORS_ORIGINS as a JSON array
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:4001",
        "http://localhost:5173",
    ]

    # Startup behaviour
    CREATE_TABLES_ON_STARTUP: bool = True
    SYNC_BUDGET_ENTRIES_ON_STARTUP: bool = True

    # Ledger rules
    FINANCIAL_YEAR_START_MONTH: int = 4  # April
    AMOUNT_TOLERANCE: Decimal = Decimal("0.01")

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
