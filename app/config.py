from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Inventory Demand Intelligence"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # ABC Analysis
    # ==============================
    ANALYSIS_WINDOW_DAYS: int = 90

    # ==============================
    # Forecasting
    # ==============================
    FORECAST_HORIZON_DAYS: int = 30
    FORECAST_MAX_WORKERS: int = 4
    FORECAST_SEED: Optional[int] = None
    FORECAST_TIER_SOURCE: str = "quick"
    HIGH_CONFIDENCE_THRESHOLD: float = 0.8

    # ==============================
    # Dashboard
    # ==============================
    DASHBOARD_WINDOW_DAYS: int = 30

    # ==============================
    # ML
    # ==============================
    ML_MODEL_PATH: Optional[str] = None
    ML_MODEL_METADATA_PATH: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
