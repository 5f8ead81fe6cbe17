"""Configuration management for RE:MIND.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the REMIND_ prefix (e.g., REMIND_DATABASE_URL).
    """

    model_config = SettingsConfigDict(
        env_prefix="REMIND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///remind.sqlite3",
        description="SQLAlchemy database URL (SQLite or PostgreSQL)",
    )

    # Auth Configuration
    jwt_secret: str = Field(
        default="change-me-in-production",
        description="Shared secret used to sign access tokens",
    )
    jwt_issuer: str = Field(default="remind-app", description="Issuer claim of access tokens")
    jwt_expiry_days: int = Field(default=7, description="Access token lifetime in days")
    bcrypt_rounds: int = Field(default=12, description="bcrypt cost factor for password hashes")

    # HTTP API
    api_host: str = Field(default="127.0.0.1", description="Bind host for `remind serve`")
    api_port: int = Field(default=8000, description="Bind port for `remind serve`")
    app_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL used in emails and checkout redirects",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API from a browser",
    )
    default_timezone: str = Field(default="UTC", description="Timezone for new accounts")

    # Reminder defaults, as "<value> <unit>" lead times before an event starts
    default_reminders: list[str] = Field(
        default_factory=lambda: ["14 days", "7 days", "3 days", "1 days", "2 hours", "1 hours"],
        description="Lead times applied to newly created events",
    )

    # Rate limiting (in-process only)
    auth_rate_limit: int = Field(default=5, description="Auth attempts per window per client IP")
    auth_rate_window_seconds: int = Field(default=15 * 60, description="Auth rate limit window")
    api_rate_limit: int = Field(default=1000, description="API requests per window per client")
    api_rate_window_seconds: int = Field(default=15 * 60, description="API rate limit window")
    quick_add_rate_limit: int = Field(default=100, description="Quick-add requests per window per user")
    quick_add_rate_window_seconds: int = Field(default=60, description="Quick-add rate limit window")

    # Categorization
    category_cache_size: int = Field(
        default=1000,
        description="Maximum number of cached category classifications",
    )

    # Email (SMTP)
    smtp_host: str | None = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port (465 uses implicit TLS)")
    smtp_user: str | None = Field(default=None, description="SMTP username")
    smtp_password: str | None = Field(default=None, description="SMTP password")
    from_email: str = Field(default="noreply@remind.app", description="Sender address")

    # Web push (VAPID)
    vapid_public_key: str | None = Field(default=None, description="VAPID public key")
    vapid_private_key: str | None = Field(default=None, description="VAPID private key")
    vapid_subject: str = Field(
        default="mailto:support@remind.app",
        description="VAPID subject claim",
    )

    # SMS (Twilio)
    twilio_account_sid: str | None = Field(default=None, description="Twilio account SID")
    twilio_auth_token: str | None = Field(default=None, description="Twilio auth token")
    twilio_from_number: str | None = Field(default=None, description="Twilio sender number")
    twilio_api_base: str = Field(
        default="https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL",
    )
    sms_timeout_seconds: int = Field(default=15, description="Timeout for SMS API calls")

    # Billing (Stripe)
    stripe_secret_key: str | None = Field(default=None, description="Stripe secret API key")
    stripe_webhook_secret: str | None = Field(default=None, description="Stripe webhook signing secret")

    # Offline sync client
    sync_api_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the API the sync client reconciles against",
    )
    sync_token: str | None = Field(default=None, description="Bearer token for the sync client")
    sync_db_path: Path = Field(
        default=Path("remind_offline.sqlite3"),
        description="Path to the local SQLite store holding offline events and pending changes",
    )
    sync_batch_size: int = Field(default=10, description="Pending changes replayed per batch")
    sync_requeue_failed: bool = Field(
        default=False,
        description="Re-queue pending changes whose replay failed instead of dropping them",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
