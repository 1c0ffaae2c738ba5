# tradethrottle/config/settings.py
from datetime import time
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tradethrottle.dates.date_key import MARKET_TZ, normalize_date_key
from tradethrottle.risk.models import StrategyConfig


class ImportSettings(BaseModel):
    """Settings for CSV ingestion.

    Attributes:
        market_timezone: IANA zone used for zone-less timestamps and day bucketing.
        default_time: Time of day assigned to date-only timestamps (market open).
        preview_rows: Number of data rows shown by the CSV preview window.
    """

    market_timezone: str = MARKET_TZ
    default_time: time = time(9, 30)
    preview_rows: int = Field(default=5, ge=1, le=500)


class AccountSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="THROTTLE_")

    starting_equity: float = Field(default=25000.0, ge=0)
    starting_date: str | None = None

    @field_validator("starting_date")
    @classmethod
    def validate_starting_date(cls, v: str | None) -> str | None:
        """Normalize starting_date to a YYYY-MM-DD key."""
        if v is None:
            return None
        key = normalize_date_key(v)
        if key is None:
            raise ValueError(f"Invalid starting_date: {v}")
        return key


class SystemConfig(BaseModel):
    name: str = "Trade Throttle"
    version: str = "1.0.0"
    log_level: str = "INFO"


class Settings(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    importer: ImportSettings = Field(default_factory=ImportSettings)
    account: AccountSettings = Field(default_factory=AccountSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML, filling account values from THROTTLE_ env vars."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        account_data = data.pop("account", None) or {}
        account = AccountSettings(**account_data)

        return cls(
            **data,
            account=account,
        )
