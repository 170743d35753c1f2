"""Configuration from environment (no hardcoded secrets)."""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Backend settings from env."""

    model_config = SettingsConfigDict(env_prefix="FILES_MANAGER_", extra="ignore")

    # Storage
    folder_path: Path = Path("/tmp/files_manager")
    db_path: Path = Path("/data/files_manager.db")

    # Session cache and job broker
    redis_url: str = "redis://localhost:6379/0"
    broker_url: str = "redis://localhost:6379/1"
    session_ttl_seconds: int = 86400

    # Listing
    page_size: int = 20

    # Jobs: retries use exponential backoff starting at job_retry_backoff seconds
    job_max_retries: int = 5
    job_retry_backoff: int = 2
    job_retry_backoff_max: int = 600

    # SMTP (for welcome emails; empty host = log only)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""

    # CORS: comma-separated string so pydantic-settings does not JSON-decode it
    cors_origins: str = "http://localhost:5000"

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins as a list (split on comma)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # Rate limiting on /connect
    rate_limit_enabled: bool = True
    connect_rate_limit: str = "30/minute"

    # Server
    port: int = 5000

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""


def get_settings() -> Settings:
    """Return application settings."""
    return Settings()
