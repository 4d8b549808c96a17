"""
Application settings and configuration.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import find_dotenv
from pydantic import ConfigDict

# Find .env file automatically
ENV_FILE = find_dotenv(usecwd=True) or ".env"

class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    api_title: str = "VendorSync"
    api_description: str = "Vendor contracts, invoices and payment analytics"
    api_version: str = "1.0"
    environment: str = "development"
    debug: bool = False

    #Logging Configuration
    log_level: str = "INFO"
    log_file: str = "logs/vendorsync.log"
    log_to_console: bool = True

    # Remote VendorSync backend
    api_base_url: str = "http://localhost:4000"
    api_token: Optional[str] = None
    api_timeout_seconds: Optional[float] = None  # None: no timeout, same as the browser client

    # Total spend persistence
    store_type: str = "file"  # Options: in_memory, file
    store_file_path: str = "data/vendorsync_store.json"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = True
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Business Rules
    max_invoice_amount: float = 10_000_000.00  # Single invoice amounts above this are ignored
    max_total_spend: float = 1_000_000_000.00  # Running total above this resets to zero
    upcoming_window_days: int = 30
    due_soon_days: int = 3
    calendar_soon_days: int = 7
    payment_due_soon_days: int = 7

    model_config = ConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance
    """
    return Settings()

settings = get_settings()
