"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "PesaLedger"
    log_level: str = "INFO"

    # Local ledger database
    database_url: str = "sqlite:///./data/pesaledger.sqlite"
    seed_defaults: bool = True

    # Cloud document store (None = in-process memory store)
    remote_database_url: Optional[str] = None
    user_id: Optional[str] = None

    # Message ingestion
    provider_sender_pattern: str = "MPESA"
    message_utc_offset_hours: int = 3  # Provider timestamps are East Africa Time
    catchup_lookback_days: int = 7

    # User-facing toggles
    sync_enabled: bool = False
    auto_categorize_enabled: bool = True
    exclude_selected_from_weekly: bool = False

    # Sync status display
    sync_completed_display_seconds: float = 2.0
    sync_error_display_seconds: float = 5.0
    sync_interval_seconds: int = 300

    # Weekly spending
    default_weekly_limit: float = 5000.0

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PESALEDGER_",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
