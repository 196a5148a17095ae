"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "Onward CRM"
    debug: bool = False
    app_url: str = "http://localhost:8000"  # base for invite links

    # Database (postgresql+psycopg for psycopg3; sqlite URLs accepted for local runs)
    database_url: str = "postgresql+psycopg://localhost:5432/onward_dev"
    db_connect_timeout: int = 10  # seconds

    # Security
    secret_key: str = ""

    # Workspaces
    invite_expiry_days: int = 7

    # Pipeline: gap between freshly appended deals in a stage
    pipeline_position_step: int = 100

    # Notifications
    notification_list_limit: int = 50
    notification_retention_days: int = 30  # read notifications older than this are purged

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.app_url = os.getenv("APP_URL", self.app_url).rstrip("/")

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'onward_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.secret_key = os.getenv("SECRET_KEY", "")

        self.invite_expiry_days = int(
            os.getenv("INVITE_EXPIRY_DAYS", str(self.invite_expiry_days))
        )
        self.pipeline_position_step = int(
            os.getenv("PIPELINE_POSITION_STEP", str(self.pipeline_position_step))
        )
        self.notification_list_limit = int(
            os.getenv("NOTIFICATION_LIST_LIMIT", str(self.notification_list_limit))
        )
        self.notification_retention_days = int(
            os.getenv("NOTIFICATION_RETENTION_DAYS", str(self.notification_retention_days))
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
