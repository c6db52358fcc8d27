"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SESYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Provider Configuration
    provider: Literal["n3rgy", "glowmarkt"] = Field(
        default="glowmarkt",
        description="Remote energy data provider",
    )
    n3rgy_base_url: str = Field(
        default="https://consumer-api.data.n3rgy.com",
        description="n3rgy consumer API base URL",
    )
    glowmarkt_base_url: str = Field(
        default="https://api.glowmarkt.com/api/v0-1",
        description="Glowmarkt API base URL",
    )
    glowmarkt_application_id: str = Field(
        default="b0f1b774-a586-4f72-9edd-27ead8aa7a8d",
        description="Glowmarkt application id sent with every request",
    )
    api_timeout: int = Field(default=30, description="API request timeout in seconds")
    max_retries: int = Field(
        default=3,
        description="Maximum number of retries for failed API requests",
    )
    retry_delay: float = Field(
        default=2.0,
        description="Base delay in seconds between retries (uses exponential backoff)",
    )

    # Secret Store Configuration
    keyring_service_name: str = Field(
        default="io.github.rars.smart_energy_explorer",
        description="Service name under which credentials are kept in the OS keychain",
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./sesync.db",
        description="Database connection URL",
    )

    # Sync Configuration
    default_start_months_back: int = Field(
        default=1,
        ge=0,
        description="Calendar months before the current one where a new stream starts",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (logs to console if not set)",
    )
    log_max_bytes: int = Field(
        default=10 * 1024 * 1024,  # 10 MB
        description="Maximum log file size before rotation",
    )
    log_backup_count: int = Field(
        default=5,
        description="Number of backup log files to keep",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
