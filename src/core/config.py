"""Configuration management for focusboard."""

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

    # SQLite Configuration
    sqlite_db_path: str = Field(default="./data/focusboard.db", description="Path to the SQLite task database")

    # Redis Configuration (optional)
    redis_url: str | None = Field(
        default=None, description="Redis connection URL used to persist the time-spent ledger"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Owner Configuration (authentication is handled upstream)
    owner_id: str = Field(default="local", description="Default owner ID when no X-Owner-Id header is sent")

    # Timer Configuration
    timer_duration_minutes: int = Field(default=25, description="Length of a focus session in minutes")
    tick_interval_seconds: int = Field(default=1, description="Interval between timer ticks in seconds")

    # Notification Configuration
    enable_notifications: bool = Field(default=True, description="Enable/disable best-effort user notifications")


# Application Constants
class Constants:
    """Application-wide constants."""

    # Classification
    CURRENT_TASKS_PER_AREA: int = 3

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_UNPROCESSABLE: int = 422
    HTTP_BAD_GATEWAY: int = 502

    # Redis Configuration
    REDIS_MAX_CONNECTIONS: int = 10  # Maximum connections in Redis connection pool
    LEDGER_KEY_PREFIX: str = "focusboard:ledger"

    # Scheduler
    TIMER_TICK_JOB_ID: str = "timer_tick"

    # Export
    EXPORT_ALL_FILENAME: str = "tasks_export_{owner}_{date}.csv"
    EXPORT_SELECTED_FILENAME: str = "selected-tasks-{owner}-{date}.csv"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
