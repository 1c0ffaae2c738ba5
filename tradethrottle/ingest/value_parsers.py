# tradethrottle/ingest/value_parsers.py
"""Tolerant parsers for broker CSV cell values.

Parsers return None for values they cannot read; they never raise on
malformed input. Callers turn a None into a row-level validation reason.
"""
import math
import re
import warnings
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Generic, TypeVar
from zoneinfo import ZoneInfo

import pandas as pd

from tradethrottle.dates.date_key import MARKET_TZ, normalize_date_key, to_market_date_key
from tradethrottle.ingest.models import Side

T = TypeVar("T")

MARKET_OPEN = time(9, 30)

_PLACEHOLDERS = {"--", "-", "n/a", "na", "null", "none"}
_NUMBER_NOISE_RE = re.compile(r"[$€£¥@,\s]")
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

_CLOCK = r"(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\.(\d{1,6}))?\s*([AaPp][Mm])?"
_ZONE = r"(?:\s*(Z|[+-]\d{2}:?\d{2}|[A-Za-z]{2,5}))?"

# Tried in order; each entry is (regex, date group order).
_DATETIME_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"^(\d{{1,2}})/(\d{{1,2}})/(\d{{4}})[ T]+{_CLOCK}{_ZONE}$"), "mdy"),
    (re.compile(rf"^(\d{{4}})-(\d{{2}})-(\d{{2}})[ T]+{_CLOCK}{_ZONE}$"), "ymd"),
    (re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), "mdy"),
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), "ymd"),
]

_ZONE_OFFSETS: dict[str, int] = {
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
}

_ISO_DATE_IN_TEXT_RE = re.compile(r"(?<!\d)(\d{4}-\d{2}-\d{2})(?!\d)")
_US_DATE_IN_TEXT_RE = re.compile(r"(?<!\d)(\d{1,2}/\d{1,2}/\d{4})(?!\d)")
_YEAR_RE = re.compile(r"\d{4}")
_DATE_TOKEN_RE = re.compile(r"\d+|[A-Za-z]+")
_CLOCK_IN_TEXT_RE = re.compile(r"\d:\d\d")

_SIDE_ALIASES: dict[str, Side] = {
    "BUY": Side.BUY,
    "B": Side.BUY,
    "BOT": Side.BUY,
    "BOUGHT": Side.BUY,
    "SELL": Side.SELL,
    "S": Side.SELL,
    "SLD": Side.SELL,
    "SOLD": Side.SELL,
}


class RowStatus(str, Enum):
    """How a row's order status routes it through normalization."""

    FILLED = "filled"
    PARTIAL = "partial"
    PENDING = "pending"
    DROPPED = "dropped"


_STATUS_MAP: dict[str, RowStatus] = {
    "filled": RowStatus.FILLED,
    "partial": RowStatus.PARTIAL,
    "partially filled": RowStatus.PARTIAL,
    "partial fill": RowStatus.PARTIAL,
    "partially": RowStatus.PARTIAL,
    "pending": RowStatus.PENDING,
    "working": RowStatus.PENDING,
    "open": RowStatus.PENDING,
}


@dataclass(frozen=True)
class FieldResult(Generic[T]):
    """Either a parsed value or the reasons it could not be parsed."""

    value: T | None = None
    reasons: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.reasons

    @classmethod
    def success(cls, value: T) -> "FieldResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "FieldResult[T]":
        return cls(reasons=(reason,))


def is_placeholder(raw: str | None) -> bool:
    """True for empty cells and "--" or "N/A" style placeholders."""
    text = str(raw).strip() if raw is not None else ""
    return not text or text.lower() in _PLACEHOLDERS


def parse_number(raw: str | None) -> float | None:
    """Parse a loosely formatted number.

    Currency symbols, "@", thousands separators and whitespace are removed
    and "(12.50)" or "$(12.50)" reads as -12.5.

    Returns:
        The number, or None for empty, placeholder or unreadable input.
    """
    if is_placeholder(raw):
        return None

    text = _NUMBER_NOISE_RE.sub("", str(raw))
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]

    if not _NUMBER_RE.match(text):
        return None

    value = float(text)
    if not math.isfinite(value):
        return None
    return -value if negative else value


def _zone_for(token: str | None, market_tz: str) -> timezone | ZoneInfo | None:
    if not token:
        return ZoneInfo(market_tz)
    upper = token.upper()
    if upper == "ET":
        return ZoneInfo(market_tz)
    if upper in _ZONE_OFFSETS:
        return timezone(timedelta(hours=_ZONE_OFFSETS[upper]))
    if token[0] in "+-":
        digits = token[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        return timezone(offset if token[0] == "+" else -offset)
    return None


def _from_match(
    match: re.Match[str], order: str, market_tz: str, default_time: time
) -> datetime | None:
    groups = match.groups()
    if order == "mdy":
        month, day, year = int(groups[0]), int(groups[1]), int(groups[2])
    else:
        year, month, day = int(groups[0]), int(groups[1]), int(groups[2])

    if len(groups) == 3:
        hour, minute, second, micro = default_time.hour, default_time.minute, default_time.second, 0
        zone = ZoneInfo(market_tz)
    else:
        hour, minute = int(groups[3]), int(groups[4])
        second = int(groups[5]) if groups[5] else 0
        micro = int(groups[6].ljust(6, "0")) if groups[6] else 0
        meridiem = groups[7]
        if meridiem:
            if hour > 12:
                return None
            if meridiem.upper() == "AM" and hour == 12:
                hour = 0
            elif meridiem.upper() == "PM" and hour < 12:
                hour += 12
        zone = _zone_for(groups[8], market_tz)
        if zone is None:
            return None

    try:
        return datetime(year, month, day, hour, minute, second, micro, tzinfo=zone)
    except ValueError:
        return None


def _fallback_parse(text: str, market_tz: str, default_time: time) -> datetime | None:
    # Year, month and day must all be present; "2024" alone is not a day.
    if not _YEAR_RE.search(text) or len(_DATE_TOKEN_RE.findall(text)) < 3:
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    if not _CLOCK_IN_TEXT_RE.search(text):
        return datetime.combine(parsed.date(), default_time, tzinfo=ZoneInfo(market_tz))
    if parsed.tzinfo is None:
        parsed = parsed.tz_localize(
            ZoneInfo(market_tz), ambiguous=False, nonexistent="shift_forward"
        )
    return parsed.to_pydatetime()


def parse_datetime(
    raw: str | None,
    market_tz: str = MARKET_TZ,
    default_time: time = MARKET_OPEN,
) -> datetime | None:
    """Parse a broker timestamp into a timezone-aware datetime.

    Tries US "MM/DD/YYYY HH:MM[:SS] [AM|PM] [ZONE]", ISO "YYYY-MM-DD HH:MM[:SS]",
    then the two date-only shapes, then generic pandas parsing. Zone-less
    values are read in market_tz; date-only values get default_time, which
    keeps them inside the intended market day.

    Returns:
        Aware datetime, or None when nothing matches.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or text.lower() in _PLACEHOLDERS:
        return None

    for pattern, order in _DATETIME_PATTERNS:
        match = pattern.match(text)
        if match:
            parsed = _from_match(match, order, market_tz, default_time)
            if parsed is not None:
                return parsed
            break

    return _fallback_parse(text, market_tz, default_time)


def extract_date_key(raw: str | None) -> str | None:
    """Pull the literal calendar date out of a timestamp string."""
    if not raw:
        return None
    for pattern in (_ISO_DATE_IN_TEXT_RE, _US_DATE_IN_TEXT_RE):
        match = pattern.search(raw)
        if match:
            key = normalize_date_key(match.group(1))
            if key is not None:
                return key
    return None


def market_date_for(raw: str | None, moment: datetime, market_tz: str = MARKET_TZ) -> str:
    """Market day for a fill: the literal date in the source text when present."""
    return extract_date_key(raw) or to_market_date_key(moment, market_tz)


def parse_side(raw: str | None) -> Side | None:
    """Resolve BUY/SELL from aliases like "B", "Bot", "Sell Short"."""
    if not raw:
        return None
    text = raw.strip().upper()
    if text in _SIDE_ALIASES:
        return _SIDE_ALIASES[text]
    if "BUY" in text:
        return Side.BUY
    if "SELL" in text:
        return Side.SELL
    return None


def normalize_status(raw: str | None) -> str:
    """Lower-case status with punctuation collapsed to single spaces."""
    return re.sub(r"[^a-z]+", " ", (raw or "").lower()).strip()


def classify_status(raw: str | None) -> RowStatus:
    """Route a status cell; an empty cell is treated as filled."""
    normalized = normalize_status(raw)
    if not normalized:
        return RowStatus.FILLED
    return _STATUS_MAP.get(normalized, RowStatus.DROPPED)
