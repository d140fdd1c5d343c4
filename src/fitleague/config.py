"""Configuration settings for the fitness league service."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = src/fitleague/config.py
# .parent.parent.parent = project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        env_prefix="FITLEAGUE_",
        extra="ignore",
    )

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Database
    database_path: Path | None = None

    # Tokens are issued by the web app's auth layer; we only verify them
    jwt_secret_key: str = "dev-only-secret-change-me-in-production-0123456789"
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = None
    access_token_expire_minutes: int = 60

    # Cron endpoint shared secret (empty disables the check, as in local dev)
    cron_secret: str = ""

    # Submission workflow
    auto_approve_hours: int = 48
    auto_approve_enabled: bool = False  # in-process alternative to /cron/auto-approve
    auto_approve_interval_minutes: int = 60

    # Rate limiting (slowapi / limits storage URI, e.g. redis://host:6379)
    rate_limit_storage_uri: str = "memory://"
    rate_limit_standard: str = "60/minute"
    rate_limit_submit: str = "20/minute"

    def model_post_init(self, __context) -> None:
        """Set default database path after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "fitleague.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
