"""
Configuration Management for Family Finance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets backend configuration. One worksheet per table."""

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
        description="ID of the spreadsheet holding the backend tables"
    )
    rows_per_new_sheet: int = Field(
        default=1000,
        ge=10,
        description="Row capacity when a table's worksheet is first created"
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


class AccessSettings(BaseSettings):
    """Route targets and audit behaviour for access control."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        extra="ignore"
    )

    landing_route: str = Field(
        default="/landing",
        description="Where unauthenticated visitors are sent"
    )
    pricing_route: str = Field(
        default="/pricing",
        description="Where users without a sufficient plan are sent"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Write access decisions to the audit table"
    )
    audit_table: str = Field(
        default="admin_audit_logs",
        description="Backend table receiving audit rows"
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
    backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Which backend client to build"
    )

    # Repository defaults
    transaction_list_limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="How many recent transactions a list returns"
    )
    default_category_color: str = Field(
        default="#6366f1",
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Color for categories created without one"
    )
    default_category_emoji: str = Field(
        default="💰",
        description="Emoji for categories created without one"
    )
    default_trial_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Trial length the admin area grants by default"
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def access(self) -> AccessSettings:
        return AccessSettings()

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

    for name in ("google_sheets", "access", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
