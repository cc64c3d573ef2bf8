from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    PHARMACY_NAME: str = "Hometown Pharmacy"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./pharmacy.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase auth
    # Placeholder values keep local/test runs from failing when Supabase
    # credentials are not required. Real deployments should override via env.
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Human-facing codes
    MEMBERSHIP_CODE_PREFIX: str = "HTP"
    IMPORT_CODE_PREFIX: str = "MEM"
    PICKUP_CODE_LENGTH: int = 8
    CODE_ALLOCATION_ATTEMPTS: int = 5
    CODE_RETRY_BASE_DELAY: float = 0.05

    # Notifications
    SMS_PROVIDER: Literal["mock"] = "mock"
    EMAIL_PROVIDER: Literal["mock"] = "mock"
    SMS_SENDER_ID: str = "HTPHRM"
    DEFAULT_FROM_EMAIL: str = "no-reply@hometownpharmacy.in"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: str) -> str:
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @field_validator("PICKUP_CODE_LENGTH")
    @classmethod
    def check_pickup_code_length(cls, v: int) -> int:
        if not 6 <= v <= 10:
            raise ValueError("PICKUP_CODE_LENGTH must be between 6 and 10")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
