"""Configuration package."""

from budgeter.config.settings import (
    AppSettings,
    BankSettings,
    Settings,
    TaxSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BankSettings",
    "Settings",
    "TaxSettings",
    "get_settings",
    "validate_all_settings",
]
