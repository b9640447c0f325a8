# leadcrm/core/config.py
"""
Application settings loaded from the environment (and .env via python-dotenv).
"""
import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "data")
DEFAULT_DATABASE_FILE = os.path.join(DATA_DIR, "db", "leadcrm.sqlite")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = ""
    secret_key: str = ""
    app_env: str = "development"
    allowed_origins: str = "http://localhost:8000"
    allowed_hosts: str = "localhost,127.0.0.1"

    access_token_lifetime_seconds: int = 28800  # 8 hours
    webhook_timeout_seconds: float = 15.0
    profile_retry_delay_seconds: float = 1.0
    send_quote_rate_limit: str = "10/minute"
    audit_log_dir: str = "logs"

    # First admin, created on startup when the user table is empty
    admin_email: str = ""
    admin_password: str = ""
    admin_username: str = "admin"

    @property
    def sync_database_url(self) -> str:
        """URL for the synchronous engine used by the service layer."""
        if not self.database_url:
            os.makedirs(os.path.dirname(DEFAULT_DATABASE_FILE), exist_ok=True)
            return f"sqlite:///{DEFAULT_DATABASE_FILE}"
        url = self.database_url
        # Hosted Postgres often hands out postgres:// but SQLAlchemy wants postgresql://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url.replace("+aiosqlite", "").replace("+asyncpg", "")

    @property
    def async_database_url(self) -> str:
        """URL for the async engine required by fastapi-users."""
        url = self.sync_database_url
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.sync_database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    if not settings.secret_key:
        raise RuntimeError("FATAL: SECRET_KEY not configured in .env")
    return settings
