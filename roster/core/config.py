# roster/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./roster.db"
    DATABASE_ECHO: bool = False

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and ("localhost" in v or v.startswith("sqlite")):
            raise ValueError("Production environment cannot use a local database!")
        return v

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:8080", "http://127.0.0.1:8080"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === System ===
    APP_NAME: str = "Roster Shift Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # === Request context ===
    ACTOR_HEADER: str = "X-User-Id"

    # === Batch allocation ===
    BATCH_CHUNK_SIZE: int = 5
    BATCH_PACING_SECONDS: float = 0.1

    @validator("BATCH_CHUNK_SIZE")
    def validate_chunk_size(cls, v):
        if v < 1:
            raise ValueError("BATCH_CHUNK_SIZE must be at least 1")
        return v

    @validator("BATCH_PACING_SECONDS")
    def validate_pacing(cls, v):
        if v < 0:
            raise ValueError("BATCH_PACING_SECONDS cannot be negative")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create a global settings instance
settings = Settings()
