"""Configuration models for trade-throttle."""

from .settings import AccountSettings, ImportSettings, Settings, SystemConfig

__all__ = [
    "AccountSettings",
    "ImportSettings",
    "Settings",
    "SystemConfig",
]
