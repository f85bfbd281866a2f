from typing import Optional
from pydantic import Field
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="INFO")
    json_format: bool = Field(default=False)
    format: str = Field(default="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    file: Optional[str] = Field(default=None)
    max_bytes: int = Field(default=10 * 1024 * 1024)
    backup_count: int = Field(default=5)

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")


class RollbackSettings(BaseSettings):
    """Rollback engine behaviour."""

    # Refuse an update rollback when the column no longer holds the recorded new value
    verify_current_value: bool = Field(default=False)
    # Append an automatic change record for every applied rollback
    record_rollbacks: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="ROLLBACK_", env_file=".env", extra="ignore")


class Settings(BaseSettings):
    project_name: str = Field(default="Change Tracking Service")
    version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    database_url: str = Field(default="sqlite:///./change_tracking.db")
    database_echo: bool = Field(default=False)
    database_pool_size: int = Field(default=5)
    database_max_overflow: int = Field(default=10)

    api_prefix: str = Field(default="/api/v1")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    rollback: RollbackSettings = Field(default_factory=RollbackSettings)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    return Settings()
