import enum
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, enum.Enum):
    """Possible log levels."""

    NOTSET = "NOTSET"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    FATAL = "FATAL"


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    # Current environment
    environment: str = "dev"

    log_level: LogLevel = LogLevel.INFO

    # Where unauthenticated visitors are sent by the guard
    login_path: str = "/login"
    # Seconds a client should wait before asking again while the session loads
    loading_retry_after: int = 1

    # Tokens issued by the identity provider
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Optional JSON document replacing the built-in workflow tables
    workflow_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TACKLEBOX_",
        env_file_encoding="utf-8",
    )


settings = Settings()
