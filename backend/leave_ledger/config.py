from datetime import date, datetime
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Ledger"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://leave_ledger:leave_ledger@db:5432/leave_ledger"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    auto_create_tables: bool = True
    db_pool_size: int = 5
    db_max_overflow: int = 10
    # Business calendar: decides "today" for backdating and the Jan 1 reset.
    timezone: str = "Asia/Bangkok"

    # Ledger arithmetic.
    hours_per_day: int = Field(default=8, gt=0)
    unlimited_leave_categories: list[str] = ["EMERGENCY"]
    strict_revert: bool = True
    allow_backdated_requests: bool = False

    # Yearly reset scheduling.
    enable_yearly_reset: bool = True
    reset_check_interval_seconds: int = 3600

    def today(self) -> date:
        """Current date in the business timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
