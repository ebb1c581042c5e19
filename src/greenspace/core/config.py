"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseSettings):
    """Record storage configuration.

    When ``database_url`` is unset the app keeps records in memory.
    """

    model_config = {"env_prefix": "GREENSPACE_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class IdentityConfig(BaseSettings):
    """Identity service configuration."""

    model_config = {"env_prefix": "GREENSPACE_IDENTITY_"}

    provider: str = "local"
    fixtures_path: str | None = None
    token_expiry_minutes: int = 60
    refresh_token_expiry_days: int = 30
    code_expiry_minutes: int = 60 * 24
    event_history_size: int = 10


class ApiKeyConfig(BaseSettings):
    """Public API key configuration for the data API."""

    model_config = {"env_prefix": "GREENSPACE_API_KEY_"}

    expires_in_days: int = 30
    default_key: str | None = None


class CorsConfig(BaseSettings):
    """CORS configuration for browser clients."""

    model_config = {"env_prefix": "GREENSPACE_CORS_"}

    allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:8080",
        ]
    )


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "GREENSPACE_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    api_key: ApiKeyConfig = Field(default_factory=ApiKeyConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
