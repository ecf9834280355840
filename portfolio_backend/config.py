"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    graphql_path: str = Field(default="/graphql")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "PORTFOLIO_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    # Auth tokens
    jwt_secret: str = Field(default="change-me-in-production-0123456789")
    jwt_algorithm: str = Field(default="HS256")
    token_expire_days: int = Field(default=7, ge=1)

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
