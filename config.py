"""
Configuration module for the booking lifecycle engine.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = "development"  # development, staging, production

    # Canonical venue-local wall clock; the engine never does timezone
    # arithmetic beyond deriving "now" in this zone.
    timezone: str = "Europe/Berlin"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file: Optional[str] = None

    # Slot allocation
    slot_granularity_minutes: int = Field(default=15, ge=1, le=240)
    max_party_size: int = Field(default=8, ge=1)
    max_special_requests_length: int = 1000

    # Concurrency
    lock_timeout_seconds: float = Field(default=2.0, gt=0)
    contention_max_retries: int = Field(default=3, ge=1)
    contention_retry_delay: float = 0.05  # seconds
    contention_retry_backoff: float = 2.0  # exponential backoff multiplier

    # Booking tokens (secrets.token_urlsafe byte count)
    booking_token_bytes: int = Field(default=32, ge=16)

    # Admins may book inside the lead time and cancel inside the cancellation window
    admin_bypass_temporal_policy: bool = True

    # Persistence
    repository_backend: Literal["memory", "supabase"] = "memory"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_backend(self) -> None:
        """
        Validate that the selected persistence backend is fully configured.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        if self.repository_backend != "supabase":
            return

        missing = []
        for field in ("supabase_url", "supabase_key"):
            value = getattr(self, field, None)
            if not value or str(value).lower().startswith("your_"):
                missing.append(field)

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
