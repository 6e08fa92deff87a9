"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Every component receives the sub-config it needs from AppSettings at
process start; nothing below the app factory reads the environment.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "hubode"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the OTP send throttle is disabled
    redis_uri: Optional[str] = None


class IdentitySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    identity_endpoint: str = "http://localhost/v1"
    identity_project_id: str = ""
    identity_api_key: str = ""
    identity_timeout_seconds: float = 5.0


class InventorySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    inventory_project_id: str = ""
    inventory_dataset: str = "production"
    inventory_api_version: str = "2023-05-03"
    inventory_write_token: str = ""
    inventory_timeout_seconds: float = 5.0


class PaymentSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    payment_key_id: str = ""
    payment_key_secret: str = ""
    payment_orders_url: str = "https://api.razorpay.com/v1/orders"
    payment_timeout_seconds: float = 10.0


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    zepto_api_token: str = ""
    zepto_from_email: str = "noreply@hubode.com"
    zepto_from_name: str = "Hubode"


class OtpSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    otp_ttl_seconds: int = 300
    otp_max_sends_per_window: int = 5
    otp_send_window_seconds: int = 900

    # Cleanup sweeper
    otp_retention_seconds: int = 86400
    otp_sweep_page_size: int = 100
    otp_sweep_interval_seconds: int = 3600


class RentReminderSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Days of the month on which the first and second reminders go out
    rent_first_reminder_day: int = Field(default=25, ge=1, le=31)
    rent_second_reminder_day: int = Field(default=28, ge=1, le=31)
    # "1st_of_next_month" or "last_day_of_current_month"
    rent_due_day_logic: str = "1st_of_next_month"
    rent_timezone: str = "Asia/Kolkata"
    rent_currency_symbol: str = "\u20b9"
    rent_payment_instructions: str = ""
    rent_admin_contact_email: str = ""
    rent_admin_contact_phone: str = ""
    rent_reminder_page_size: int = Field(default=100, gt=0)
    rent_reminder_interval_seconds: int = 86400


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "https://hubode.com"
    app_name: str = "hubode-core"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    identity: Optional[IdentitySettings] = None
    inventory: Optional[InventorySettings] = None
    payment: Optional[PaymentSettings] = None
    email: Optional[EmailSettings] = None
    otp: Optional[OtpSettings] = None
    rent: Optional[RentReminderSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.identity is None:
            self.identity = IdentitySettings()
        if self.inventory is None:
            self.inventory = InventorySettings()
        if self.payment is None:
            self.payment = PaymentSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.otp is None:
            self.otp = OtpSettings()
        if self.rent is None:
            self.rent = RentReminderSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
