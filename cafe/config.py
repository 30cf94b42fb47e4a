"""Application configuration and settings management."""

import json
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="CAFE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Cafe Ordering API"
    api_prefix: str = "/api"

    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL. When unset an in-process cache is used.",
    )
    session_ttl_seconds: int = Field(
        default=604800,
        ge=1,
        description="Session lifetime; matches the issued token lifetime.",
    )
    cart_ttl_seconds: int = Field(default=7 * 24 * 60 * 60, ge=1)
    setting_cache_ttl_seconds: int = Field(default=3600, ge=1)
    session_cleanup_interval_seconds: int = Field(
        default=3600,
        ge=0,
        description="Interval of the expired-session sweep; 0 disables it.",
    )

    store_latitude: float = Field(default=19.8845, ge=-90, le=90)
    store_longitude: float = Field(default=102.135, ge=-180, le=180)

    menu_service_url: Optional[str] = Field(
        default=None,
        description="Base URL of the menu catalog service (e.g., http://localhost:3000/api).",
    )
    menu_service_timeout: float = Field(default=10.0, gt=0)

    allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://localhost:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
