"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = Field("Space Booking API", alias="APP_NAME")
    api_v1_prefix: str = "/api/v1"
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    default_timezone: str = Field("UTC", alias="DEFAULT_TIMEZONE")
    full_day_hour_threshold: int = Field(
        18, ge=1, le=24, alias="FULL_DAY_HOUR_THRESHOLD"
    )
    availability_max_days: int = Field(400, ge=1, alias="AVAILABILITY_MAX_DAYS")
    tax_rate_percent: float = Field(11.0, ge=0, alias="TAX_RATE_PERCENT")

    status_ticker_enabled: bool = Field(default=False, alias="STATUS_TICKER_ENABLED")
    status_tick_seconds: float = Field(30.0, gt=0, alias="STATUS_TICK_SECONDS")

    cors_allowlist: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], alias="CORS_ALLOWLIST"
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
    )

    @field_validator("cors_allowlist", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
