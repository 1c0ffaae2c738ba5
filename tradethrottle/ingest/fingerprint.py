# tradethrottle/ingest/fingerprint.py
"""Content fingerprints for fills and pending orders.

A fingerprint depends only on what was executed, never on which file or row
it came from, so a store keyed by fingerprint makes re-imports idempotent.
"""
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from tradethrottle.ingest.models import Fill, Side


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def hash_string(text: str) -> str:
    """djb2 variant (hash * 33 ^ code unit) over UTF-16 code units.

    Returns:
        Eight lower-case hex characters.
    """
    encoded = text.encode("utf-16-le")
    value = 5381
    for i in range(0, len(encoded), 2):
        code = encoded[i] | (encoded[i + 1] << 8)
        value = _to_int32(_to_int32(value << 5) + value) ^ code
    return format(value & 0xFFFFFFFF, "08x")


def iso_utc(moment: datetime) -> str:
    """UTC timestamp with millisecond precision, e.g. 2026-01-22T14:31:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def _side_text(side: Side | str) -> str:
    return (side.value if isinstance(side, Side) else side).upper().strip()


def fill_fingerprint(
    symbol: str,
    side: Side | str,
    quantity: float,
    price: float,
    filled_time: datetime,
) -> str:
    """Fingerprint over SYMBOL|SIDE|quantity|price|UTC timestamp."""
    normalized = "|".join(
        [
            symbol.upper().strip(),
            _side_text(side),
            f"{quantity:.6f}",
            f"{price:.6f}",
            iso_utc(filled_time),
        ]
    )
    return hash_string(normalized)


def fill_id(fingerprint: str) -> str:
    return f"fill_{fingerprint}"


def synthetic_order_id(fingerprint: str) -> str:
    """Order id used when the export carries none."""
    return f"auto_{fingerprint}"


def pending_order_fingerprint(
    symbol: str,
    side: Side | str,
    quantity: float,
    price: float | None,
    stop_price: float | None,
    limit_price: float | None,
    placed_time: datetime | None,
    order_type: str,
) -> str:
    """Fingerprint for a pending order; missing values hash as empty fields."""

    def fmt(value: float | None) -> str:
        return "" if value is None else f"{value:.6f}"

    normalized = "|".join(
        [
            symbol.upper().strip(),
            _side_text(side),
            f"{quantity:.6f}",
            fmt(price),
            fmt(stop_price),
            fmt(limit_price),
            iso_utc(placed_time) if placed_time else "",
            order_type.upper(),
        ]
    )
    return hash_string(normalized)


def sort_fills(fills: Iterable[Fill]) -> list[Fill]:
    """Order by execution time, ties broken by source row."""
    return sorted(fills, key=lambda f: (f.filled_time, f.row_index))


@dataclass
class MergeResult:
    """Outcome of merging an import into an existing fill collection.

    Attributes:
        fills: Union of both collections, sorted by time then row.
        added: Incoming fills whose fingerprint was new.
        duplicates: Number of incoming fills already present.
    """

    fills: list[Fill]
    added: list[Fill]
    duplicates: int


def merge_fills(existing: Iterable[Fill], incoming: Iterable[Fill]) -> MergeResult:
    """Set-union of fills keyed by fingerprint; existing fills win."""
    by_fingerprint: dict[str, Fill] = {}
    for fill in existing:
        by_fingerprint.setdefault(fill.fingerprint, fill)

    added: list[Fill] = []
    duplicates = 0
    for fill in incoming:
        if fill.fingerprint in by_fingerprint:
            duplicates += 1
            continue
        by_fingerprint[fill.fingerprint] = fill
        added.append(fill)

    return MergeResult(
        fills=sort_fills(by_fingerprint.values()),
        added=added,
        duplicates=duplicates,
    )
