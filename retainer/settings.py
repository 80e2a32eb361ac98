"""
retainer.settings
=================

Configuration settings for the retainer library.

Defaults can be overridden through ``RETAINER_*`` environment variables
or a ``.env`` file in the working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

# Database settings
# ---------------------------------------------------------------------------
DB_FILE = BASE_DIR / "retainer.db"
DEFAULT_DB_URL = f"sqlite:///{DB_FILE}"

# Sweep settings
# ---------------------------------------------------------------------------
SWEEP_INTERVAL = 60 * 60  # 1 hour


class Settings(BaseSettings):
    """Pydantic model for library settings, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RETAINER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    storage_backend: Literal["memory", "sql", "rest"] = Field(
        default="sql", description="Where contracts are persisted"
    )

    # SQL backend
    database_url: str = Field(default=DEFAULT_DB_URL, description="SQLAlchemy database URL")
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # REST (PostgREST / Supabase) backend
    rest_url: Optional[HttpUrl] = Field(default=None, description="Base URL of the REST endpoint, e.g. https://xyz.supabase.co/rest/v1")
    rest_api_key: str = Field(default="", description="API key sent as apikey + bearer token")
    rest_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    contracts_table: str = Field(default="clients", description="Table holding active contracts")
    archive_table: str = Field(default="clients_history", description="Table holding archive entries")

    # Store
    sweep_interval_seconds: float = Field(
        default=SWEEP_INTERVAL, ge=0, description="Seconds between expiry sweeps (0 disables the timer)"
    )

    # Display
    currency_symbol: str = Field(default="€", description="Symbol used by format_amount")


# Initialize settings
settings = Settings()
