"""
Application settings loaded from the environment (prefix SCHOOL_RECORDS_) or .env
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the API, scripts and services"""

    model_config = SettingsConfigDict(
        env_prefix="SCHOOL_RECORDS_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    app_name: str = "School Records Core"
    app_version: str = "1.0.0"
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./school_records.db")
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30
    # Busy timeout (seconds) for SQLite writers waiting on the database lock
    sqlite_busy_timeout: float = 30.0
    # Row lock wait for counter updates, PostgreSQL only; None leaves server default
    lock_timeout_ms: Optional[int] = Field(default=5000, ge=0)
    auto_create_tables: bool = False

    # Identifier formatting
    admission_pad_width: int = Field(default=3, ge=1, le=12)
    staff_pad_width: int = Field(default=4, ge=1, le=12)
    default_separator: str = Field(default="-", min_length=1, max_length=1)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once"""
    return Settings()
