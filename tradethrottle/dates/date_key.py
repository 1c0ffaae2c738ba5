# tradethrottle/dates/date_key.py
"""Canonical calendar-day keys and epoch-day arithmetic."""
import math
import re
from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

MARKET_TZ = "America/New_York"

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

_EPOCH = date(1970, 1, 1)
_MIN_YEAR = 1990
_MAX_YEAR = 2100


def _build_key(year: int, month: int, day: int) -> str | None:
    if not _MIN_YEAR <= year <= _MAX_YEAR:
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def is_iso_date_key(value: str) -> bool:
    """Check whether a string is shaped like YYYY-MM-DD."""
    return bool(_ISO_DATE_RE.match(value))


def to_market_date_key(moment: datetime, tz: str = MARKET_TZ) -> str:
    """Bucket a timestamp into the market-local calendar day.

    Naive datetimes are treated as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz)).date().isoformat()


def normalize_date_key(value: str | int | float | date | datetime | None) -> str | None:
    """Convert a loosely formatted date into a YYYY-MM-DD key.

    Args:
        value: ISO or US slash date string, epoch milliseconds, or a
            date/datetime instance.

    Returns:
        Canonical key, or None when the input is not a plausible date.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        key = to_market_date_key(value)
        return key if _MIN_YEAR <= int(key[:4]) <= _MAX_YEAR else None

    if isinstance(value, date):
        return _build_key(value.year, value.month, value.day)

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        if not _MIN_YEAR <= moment.year <= _MAX_YEAR:
            return None
        return to_market_date_key(moment)

    text = value.strip()
    if not text:
        return None

    match = _ISO_DATE_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_key(year, month, day)

    match = _US_DATE_RE.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        return _build_key(year, month, day)

    return None


def iso_to_epoch_day(key: str) -> int:
    """Convert a YYYY-MM-DD key to days since 1970-01-01.

    Raises:
        ValueError: If the key is not a valid ISO date key.
    """
    match = _ISO_DATE_RE.match(key) if isinstance(key, str) else None
    if not match or _build_key(*(int(part) for part in match.groups())) is None:
        raise ValueError(f"Invalid ISO date key: {key}")
    return (date.fromisoformat(key) - _EPOCH).days


def epoch_day_to_iso(epoch_day: int) -> str:
    """Convert days since 1970-01-01 back to a YYYY-MM-DD key.

    Raises:
        ValueError: If epoch_day is not an integral number.
    """
    if isinstance(epoch_day, bool) or not isinstance(epoch_day, int):
        raise ValueError(f"Invalid epoch day: {epoch_day}")
    return (_EPOCH + timedelta(days=epoch_day)).isoformat()


def iter_day_keys(start: str, end: str) -> Iterator[str]:
    """Yield every calendar day key from start to end inclusive."""
    for epoch_day in range(iso_to_epoch_day(start), iso_to_epoch_day(end) + 1):
        yield epoch_day_to_iso(epoch_day)


def next_business_day(key: str) -> str:
    """Return the next weekday after the given key (holidays are not skipped)."""
    current = date.fromisoformat(key) + timedelta(days=1)
    while current.weekday() >= 5:
        current += timedelta(days=1)
    return current.isoformat()


def today_market_key(tz: str = MARKET_TZ) -> str:
    """Today's calendar day in the market time zone."""
    return to_market_date_key(datetime.now(timezone.utc), tz)
