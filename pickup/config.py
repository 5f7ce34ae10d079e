"""Configuration management for the pickup order service."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Redis Configuration
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")

    # API Configuration
    api_port: int = Field(default=8000, description="API server port")
    api_host: str = Field(default="0.0.0.0", description="API server host")

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Twilio (SMS) Configuration
    twilio_account_sid: str = Field(default="", description="Twilio account SID")
    twilio_auth_token: str = Field(default="", description="Twilio auth token")
    twilio_phone_number: str = Field(default="", description="Twilio sender number")
    twilio_api_base: str = Field(
        default="https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL",
    )

    # Resend (email) Configuration
    resend_api_key: str = Field(default="", description="Resend API key")
    resend_from_email: str = Field(
        default="orders@zsmokeshop.com", description="Sender address for emails"
    )
    resend_api_base: str = Field(
        default="https://api.resend.com", description="Resend REST API base URL"
    )

    # Store contacts
    store_name: str = Field(default="Z SMOKE SHOP", description="Store display name")
    store_phone_william_cannon: str = Field(default="", description="William Cannon store phone")
    store_phone_cameron_rd: str = Field(default="", description="Cameron Rd store phone")
    store_email_william_cannon: str = Field(
        default="williamcannon@zsmokeshop.com", description="William Cannon store email"
    )
    store_email_cameron_rd: str = Field(
        default="cameron@zsmokeshop.com", description="Cameron Rd store email"
    )

    store_timezone: str = Field(
        default="America/Chicago", description="Timezone for pickup times in messages"
    )

    # Gateway Settings
    gateway_timeout: float = Field(
        default=10.0, gt=0, description="Timeout for a single gateway send in seconds"
    )

    # Pickup Settings
    pickup_window_minutes: int = Field(default=60, gt=0, description="Pickup window length")
    expiring_soon_minutes: int = Field(
        default=15, gt=0, description="Lead time before expiry that counts as expiring soon"
    )
    sweep_interval_seconds: int = Field(
        default=60, gt=0, description="Expiry sweeper cadence in seconds"
    )
    sweeper_enabled: bool = Field(default=True, description="Run the in-process sweeper")
    cron_secret: str = Field(default="", description="Bearer secret for the cron endpoint")

    # Order Settings
    order_number_prefix: str = Field(default="ZS", description="Order number prefix")
    tax_rate: Decimal = Field(default=Decimal("0.0825"), ge=0, description="Sales tax rate")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @model_validator(mode="after")
    def validate_sweep_cadence(self) -> "Settings":
        """The sweeper must run at least once per expiring-soon window."""
        if self.sweep_interval_seconds > self.expiring_soon_minutes * 60:
            raise ValueError(
                "sweep_interval_seconds must not exceed the expiring-soon threshold"
            )
        if self.expiring_soon_minutes >= self.pickup_window_minutes:
            raise ValueError("expiring_soon_minutes must be shorter than the pickup window")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
