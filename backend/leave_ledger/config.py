from typing import Literal

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
    database_url: str = "postgresql+asyncpg://leave_ledger:leave_ledger@db:5432/leave_ledger"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Calendar
    default_country_code: str = "IN"
    default_weekend_days: list[int] = [5, 6]  # Python weekday(): Saturday, Sunday

    # Entitlements
    casual_annual_quota: int = 12
    sick_annual_quota: int = 10
    earned_annual_quota: int = 15
    casual_max_carry_forward: int = 5
    earned_max_carry_forward: int = 30

    # Scheduled jobs
    auto_reject_after_days: int = 7
    scheduler_timezone: str = "Asia/Kolkata"
    auto_reject_hour: int = 1
    auto_reject_minute: int = 0
    rollover_month: int = 1
    rollover_day: int = 1
    rollover_hour: int = 2
    rollover_minute: int = 0

    # Holiday provider
    calendarific_api_key: str | None = None
    calendarific_api_url: str = "https://calendarific.com/api/v2/holidays"
    holiday_provider_timeout_seconds: float = 10.0


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
