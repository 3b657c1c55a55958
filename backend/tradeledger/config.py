"""
Heights Ledger - Configuration Settings
"""
from decimal import Decimal
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "Heights Ledger"
    APP_ENV: str = "development"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"

    # =========================
    # Server Configuration
    # =========================
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    # =========================
    # Database - PostgreSQL
    # =========================
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "heights_ledger"
    POSTGRES_USER: str = "heights_user"
    POSTGRES_PASSWORD: str = "dev_password_123"
    # Direct DATABASE_URL from environment (overrides individual settings)
    DATABASE_URL: str = ""
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Get the async database URL."""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            # Ensure it uses asyncpg driver
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # =========================
    # JWT Authentication
    # =========================
    JWT_SECRET_KEY: str = "your-jwt-secret-key-change-this"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # =========================
    # Ledger Settings
    # =========================
    BASE_CURRENCY: str = "INR"
    FEE_RATE: Decimal = Decimal("0.001")   # 0.1% of notional
    MIN_FEE: Decimal = Decimal("10")
    MAX_FEE: Decimal = Decimal("1000")
    SETTLEMENT_MAX_RETRIES: int = 3

    # =========================
    # Price Cache
    # =========================
    PRICE_CACHE_TTL_SECONDS: int = 60
    PRICE_CACHE_MAX_ENTRIES: int = 1000

    # =========================
    # Logging
    # =========================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"
    LOG_TO_FILE: bool = True

    @field_validator("FEE_RATE")
    @classmethod
    def validate_fee_rate(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("FEE_RATE must not be negative")
        return v

    @model_validator(mode="after")
    def validate_fee_bounds(self):
        if self.MIN_FEE < 0 or self.MIN_FEE > self.MAX_FEE:
            raise ValueError("MIN_FEE must be between 0 and MAX_FEE")
        if self.SETTLEMENT_MAX_RETRIES < 1:
            raise ValueError("SETTLEMENT_MAX_RETRIES must be at least 1")
        return self


# Create global settings instance
settings = Settings()
