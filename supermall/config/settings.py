"""
SuperMall Catalog
Centralized Configuration Management

Configuration is loaded with Pydantic settings from environment variables and
an optional .env file. Each subsystem owns a section with its own env prefix.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


STORAGE_BACKENDS = ("auto", "redis", "local")


class StorageSettings(BaseSettings):
    """Persistence backend selection"""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: str = Field(default="auto", description="Backend: auto, redis or local")
    local_path: Optional[str] = Field(
        default=None,
        description="JSON file backing the local store (in-memory when unset)",
    )
    key_prefix: str = Field(default="supermall_", description="Prefix for collection keys")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate backend value"""
        if v.lower() not in STORAGE_BACKENDS:
            raise ValueError(f"Storage backend must be one of: {list(STORAGE_BACKENDS)}")
        return v.lower()


class RedisSettings(BaseSettings):
    """Redis document store configuration"""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[SecretStr] = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    max_connections: int = Field(default=20, description="Max connections")
    socket_timeout: int = Field(default=5, description="Socket timeout in seconds")
    url: Optional[str] = Field(default=None, alias="REDIS_URL", description="Redis URL (overrides host/port)")

    def get_url(self) -> str:
        """Redis connection URL - uses REDIS_URL if set, otherwise builds from host/port"""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class MonitoringSettings(BaseSettings):
    """Logging and telemetry configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")
    telemetry_buffer_size: int = Field(default=100, description="Recent telemetry events kept in memory")


class CatalogSettings(BaseSettings):
    """Catalog business defaults"""

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    low_stock_threshold: int = Field(default=10, description="Stock level considered low")
    expiring_within_days: int = Field(default=7, description="Default horizon for expiring offers")
    compare_min: int = Field(default=2, description="Minimum products in a comparison")
    compare_max: int = Field(default=4, description="Maximum products in a comparison")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="supermall-catalog", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    storage: StorageSettings = Field(default_factory=StorageSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
