"""Application configuration.

Loads settings from environment variables with sensible defaults.
``JWT_SECRET`` has no default and must be provided.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    request_timeout_seconds: float = 30.0

    # Database
    database_url: str = "postgresql+asyncpg://catalog:catalog@db:5432/catalog"

    # Cache
    redis_url: str = "redis://redis:6379/0"
    cache_enabled: bool = True
    cache_ttl_seconds: int = 60

    # Authentication
    jwt_secret: str
    jwt_expires_minutes: int = 1440

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
