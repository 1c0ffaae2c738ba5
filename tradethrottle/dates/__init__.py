"""Date key normalization and calendar arithmetic."""

from .date_key import (
    MARKET_TZ,
    epoch_day_to_iso,
    is_iso_date_key,
    iso_to_epoch_day,
    iter_day_keys,
    next_business_day,
    normalize_date_key,
    to_market_date_key,
    today_market_key,
)

__all__ = [
    "MARKET_TZ",
    "epoch_day_to_iso",
    "is_iso_date_key",
    "iso_to_epoch_day",
    "iter_day_keys",
    "next_business_day",
    "normalize_date_key",
    "to_market_date_key",
    "today_market_key",
]
