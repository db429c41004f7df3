from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App Settings
    APP_NAME: str = "EVDock Deposit Workflow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:8081",  # Expo dev server
        "http://localhost:19006",
    ]

    # Record Store
    RECORD_STORE_BACKEND: str = "memory"  # memory | redis | sql
    STORE_NAMESPACE: str = "evdock"
    REDIS_URL: Optional[str] = None  # e.g., "redis://localhost:6379/0"
    DATABASE_URL: str = "sqlite+aiosqlite:///./evdock.db"

    # Deposit policy
    DEFAULT_DEALER_ID: str = "dealer001"
    DEFAULT_DEPOSIT_PERCENTAGE: float = 20.0
    AVAILABLE_DELIVERY_DAYS: int = 7  # In-stock vehicle handover
    AVAILABLE_PAYMENT_DUE_DAYS: int = 14
    PRE_ORDER_DELIVERY_DAYS: int = 90  # Manufacturer lead time
    PRE_ORDER_PAYMENT_GRACE_DAYS: int = 7  # Days after delivery for final payment

    # Settlement policy
    INSTALLMENT_INTEREST_RATE: float = 6.0  # Annual, percent
    PAYMENT_REQUEST_TTL_MINUTES: int = 15

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('RECORD_STORE_BACKEND', mode='before')
    @classmethod
    def normalize_backend(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
        if v not in ("memory", "redis", "sql"):
            raise ValueError(f"Unsupported record store backend: {v}")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
