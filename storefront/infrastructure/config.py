"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Persistence
    database_url: str = "postgresql+asyncpg://storefront:storefront_dev_password@db:5432/storefront"
    store_backend: Literal["sql", "memory"] = "sql"

    # Authentication (tokens are issued elsewhere, only verified here)
    jwt_secret: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"

    # Catalog
    category_delete_policy: Literal["allow", "restrict"] = "allow"
    default_page_size: int = 20
    default_highlight_limit: int = 8
    max_page_size: int = 100

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
