"""
Configuration Management for finledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds that shape financial results (epsilon zeroing, oversell policy,
rollforward cap, projection thresholds) live here so that any policy change
is explicit and reviewable rather than buried in the algorithms.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per entity
    investments_sheet_name: str = Field(default="Investments")
    ledger_sheet_name: str = Field(default="LedgerEntries")
    subscriptions_sheet_name: str = Field(default="Subscriptions")
    committees_sheet_name: str = Field(default="Committees")
    installments_sheet_name: str = Field(default="CommitteePayments")
    sips_sheet_name: str = Field(default="SIPs")
    alerts_sheet_name: str = Field(default="PriceAlerts")
    goals_sheet_name: str = Field(default="Goals")
    transactions_sheet_name: str = Field(default="Transactions")
    notifications_sheet_name: str = Field(default="Notifications")
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class QuoteSettings(BaseSettings):
    """Market quote provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="QUOTES_",
        extra="ignore"
    )

    batch_size: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Concurrent quote lookups per batch"
    )
    default_currency: str = Field(
        default="INR",
        description="Currency assumed when the provider does not report one"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR)$",
        description="Root log level for the job runner"
    )

    # Ledger
    zero_quantity_epsilon: float = Field(
        default=1e-6,
        gt=0.0,
        description="Quantities below this after a sell snap to exactly zero"
    )
    oversell_policy: str = Field(
        default="clamp",
        pattern="^(clamp|reject)$",
        description="clamp: oversell liquidates the position; reject: oversell fails validation"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a ledger entry can be dated"
    )

    # Scheduler
    rollforward_max_iterations: int = Field(
        default=24,
        ge=1,
        description="Maximum cadence shifts in a single rollforward"
    )
    reminder_window_days: int = Field(
        default=30,
        ge=0,
        le=365,
        description="How far ahead subscription reminders look"
    )

    # Planning
    savings_window_months: int = Field(
        default=6,
        ge=1,
        le=60,
        description="Trailing window of cash-flow history for savings rate"
    )
    goal_on_track_threshold: float = Field(
        default=85.0,
        ge=0.0,
        le=100.0,
    )
    goal_at_risk_threshold: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
    )
    what_if_max_months: int = Field(
        default=600,
        ge=1,
        description="Goal ETA search horizon in months"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def quotes(self) -> QuoteSettings:
        return QuoteSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "quotes", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
