"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Chai-Fi POS"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Storage
    STORAGE_BACKEND: str = "auto"  # auto, memory or database
    DATABASE_URL: Optional[str] = None  # unset -> in-memory storage
    SQL_ECHO: bool = False
    SEED_DEFAULT_MENU: bool = True

    # Billing
    DEFAULT_BILLER_NAME: str = "Sriram"
    ENFORCE_TOTAL_CONSISTENCY: bool = False
    TOTAL_TOLERANCE: float = 0.01

    # Pagination
    DEFAULT_SUMMARY_LIMIT: int = 30
    MAX_PAGE_SIZE: int = 1000

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    ALLOWED_HOSTS: List[str] = ["*"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
