"""Configuration management for git-inquisitor."""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
LOG_FORMATS = ("console", "json")


class AppConfig(BaseSettings):
    """Application configuration settings."""

    # Logging
    log_level: str = Field(default="INFO", alias="INQUISITOR_LOG_LEVEL")
    log_format: str = Field(default="console", alias="INQUISITOR_LOG_FORMAT")

    # Cache location, relative to the repository root
    cache_dir: str = Field(default=".inquisitor/cache", alias="INQUISITOR_CACHE_DIR")

    # Blame worker pool; None means one worker per CPU
    max_workers: Optional[int] = Field(default=None, alias="INQUISITOR_MAX_WORKERS", gt=0, le=256)
    blame_timeout_seconds: Optional[float] = Field(default=None, alias="INQUISITOR_BLAME_TIMEOUT_SECONDS", gt=0)

    # Reports
    report_basename: str = Field(default="inquisitor-report", alias="INQUISITOR_REPORT_BASENAME")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate the log level name."""
        if v.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {v}", {"allowed": list(LOG_LEVELS)})
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Validate the log renderer name."""
        if v.lower() not in LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format: {v}", {"allowed": list(LOG_FORMATS)})
        return v.lower()

    @field_validator('cache_dir')
    @classmethod
    def validate_cache_dir(cls, v):
        """Cache directory must be a non-empty relative path."""
        if not v.strip():
            raise ConfigurationError("Cache directory must not be empty")
        if v.startswith("/"):
            raise ConfigurationError("Cache directory must be relative to the repository root")
        return v


class Config:
    """Main configuration class."""

    def __init__(self) -> None:
        self.app = AppConfig()

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment and .env file."""
        return cls()


# Global configuration instance
config = Config.load()
