"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # Application
        self.APP_NAME: str = "Ledger Engine"
        self.APP_VERSION: str = "0.1.0"
        self.DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

        # Server
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "8000"))

        # Database
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL",
            "postgresql://localhost:5432/ledger_engine"
        )

        # Environment
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Bearer token required on every route except /health.
        # Unset means the service runs without authentication.
        self.ACCOUNTING_SERVICE_TOKEN: str | None = (
            os.getenv("ACCOUNTING_SERVICE_TOKEN") or None
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. Tests that need different
    values build their own Settings and pass it to create_app().
    """
    return Settings()
