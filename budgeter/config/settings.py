"""
Configuration Management for Budgeter

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, and every setting that can break
the engine (the tax bracket table in particular) is validated at startup
by validate_all_settings().
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaxSettings(BaseSettings):
    """Tax estimation constants."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETER_TAX_",
        extra="ignore"
    )

    tax_year: int = Field(
        default=2025,
        ge=2000,
        le=2100,
        description="Tax year the bracket thresholds belong to"
    )
    standard_deduction: Decimal = Field(
        default=Decimal("15000"),
        ge=0,
        description="Standard deduction, taxed at 0%"
    )
    social_security_rate: Decimal = Field(
        default=Decimal("0.062"),
        ge=0,
        le=1,
        description="Social Security (OASDI) rate"
    )
    medicare_rate: Decimal = Field(
        default=Decimal("0.0145"),
        ge=0,
        le=1,
        description="Medicare rate"
    )
    self_employment_factor: Decimal = Field(
        default=Decimal("0.9235"),
        gt=0,
        le=1,
        description="Share of 1099 income subject to self-employment tax"
    )

    @field_validator('medicare_rate')
    @classmethod
    def validate_combined_rate(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        """The combined FICA rate must leave something to gross up."""
        ss_rate = info.data.get("social_security_rate")
        if ss_rate is not None and ss_rate + v >= 1:
            raise ValueError(
                "social_security_rate + medicare_rate must be below 1"
            )
        return v


class BankSettings(BaseSettings):
    """Linked bank account provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BANK_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=False,
        description="Allow imports from the injected bank data source"
    )
    max_fetch_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before a transaction fetch is given up"
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
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum log level"
    )

    # Reporting
    report_decimal_places: int = Field(
        default=2,
        ge=0,
        le=4,
        description="Decimal places used when reporting money"
    )

    @property
    def report_quantum(self) -> Decimal:
        """Quantum for Decimal.quantize at the reporting boundary."""
        return Decimal(1).scaleb(-self.report_decimal_places)

    @property
    def effective_log_level(self) -> str:
        """DEBUG in debug mode, otherwise log_level."""
        return "DEBUG" if self.debug_mode else self.log_level


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

    @property
    def tax(self) -> TaxSettings:
        return TaxSettings()

    @property
    def bank(self) -> BankSettings:
        return BankSettings()

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

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries describing failures. Run this once at startup.
    """
    # Imported here: the bracket module depends on this one
    from budgeter.tax.brackets import load_tax_brackets

    results = {}

    settings = get_settings()

    checks = {
        "tax": lambda: settings.tax,
        "bank": lambda: settings.bank,
        "app": lambda: settings.app,
        "tax_brackets": lambda: load_tax_brackets(settings.tax),
    }

    for name, check in checks.items():
        try:
            check()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
