"""
Configuration settings for the Sakila admin console.

Uses Pydantic Settings to load environment variables for the database
connection, the application API, logging, and list/cache defaults. Database
credentials are only ever read here, on the server side; nothing in the API
layer echoes them back to clients.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("sakila", alias="DB_NAME")
    db_schema: str = Field("public", alias="DB_SCHEMA")
    db_pool_min: int = Field(1, alias="DB_POOL_MIN")
    db_pool_max: int = Field(10, alias="DB_POOL_MAX")
    query_timeout_seconds: float = Field(15.0, alias="QUERY_TIMEOUT_SECONDS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Lists and caches
    default_page_size: int = Field(25, alias="DEFAULT_PAGE_SIZE")
    existence_cache_ttl_seconds: Optional[float] = Field(
        300.0, alias="EXISTENCE_CACHE_TTL_SECONDS"
    )

    # Application API
    admin_api_key: Optional[str] = Field(None, alias="ADMIN_API_KEY")
    api_host: str = Field("127.0.0.1", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")
    cors_origins: List[str] = Field(default_factory=list, alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def dsn(self) -> str:
        """Compose a libpq-style DSN from the connection fields."""
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
