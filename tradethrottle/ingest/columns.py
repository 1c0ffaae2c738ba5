# tradethrottle/ingest/columns.py
"""Resolve logical fields to CSV header columns through a ranked alias table."""
import re
from dataclasses import dataclass

NOT_FOUND = -1

# Aliases are ranked: earlier entries win when several headers match exactly.
COLUMN_ALIASES: dict[str, list[str]] = {
    "symbol": ["Symbol", "Ticker", "Stock Symbol", "Instrument"],
    "side": ["Side", "Action", "Buy/Sell", "Transaction Type"],
    "quantity": ["Filled Qty", "Filled Quantity", "Filled", "Qty", "Quantity", "Shares"],
    "price": ["Avg Price", "Average Price", "Fill Price", "Filled Price", "Execution Price", "Price"],
    "time": ["Filled Time", "Fill Time", "Executed Time", "Execution Time", "Date/Time", "Time", "Date"],
    "order_id": ["Order No.", "Order Number", "Order ID", "OrderId"],
    "commission": ["Commission", "Commissions", "Fees", "Fee"],
    "status": ["Status", "Order Status"],
    "name": ["Name", "Company", "Description"],
    "total_quantity": ["Total Qty", "Total Quantity", "Order Qty"],
    "placed_time": ["Placed Time", "Order Time", "Created Time", "Submitted Time"],
    "time_in_force": ["Time-in-Force", "TIF", "Duration"],
    "stop_price": ["Stop Price", "Stop", "Trigger Price"],
    "limit_price": ["Limit Price", "Lmt Price", "Price"],
    "order_type": ["Order Type", "Type"],
}

# Fields a file must map for any row to become a fill.
REQUIRED_FIELDS = ["symbol", "side", "quantity", "price", "time"]

# Display names used in errors and previews.
FIELD_LABELS: dict[str, str] = {
    "symbol": "Symbol",
    "side": "Side",
    "quantity": "Filled Qty",
    "price": "Avg Price",
    "time": "Filled Time",
    "order_id": "Order No.",
    "commission": "Commission",
    "status": "Status",
    "name": "Name",
    "total_quantity": "Total Qty",
    "placed_time": "Placed Time",
    "time_in_force": "Time-in-Force",
    "stop_price": "Stop Price",
    "limit_price": "Limit Price",
    "order_type": "Order Type",
}

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_header(value: str) -> str:
    """Lower-case and strip every non-alphanumeric character."""
    return _NON_ALNUM_RE.sub("", value.lower())


def find_column_index(headers: list[str], field: str) -> int:
    """Find the header column for a logical field.

    Exact normalized matches are tried first in alias order; only when no
    alias matches exactly does substring containment (either direction)
    apply. The substring pass never takes a header that is an exact alias
    of another field, so "Price" cannot stand in for "Stop Price".

    Args:
        headers: Header row cells.
        field: Logical field name (a key of COLUMN_ALIASES).

    Returns:
        Column index, or NOT_FOUND.
    """
    aliases = [normalize_header(a) for a in COLUMN_ALIASES.get(field, [field])]
    normalized = [normalize_header(h) for h in headers]

    for alias in aliases:
        for idx, header in enumerate(normalized):
            if header and header == alias:
                return idx

    claimed = _claimed_by_other_fields(normalized, field)
    for alias in aliases:
        for idx, header in enumerate(normalized):
            if not header or idx in claimed:
                continue
            if alias in header or header in alias:
                return idx

    return NOT_FOUND


def _claimed_by_other_fields(normalized: list[str], field: str) -> set[int]:
    other_aliases = {
        normalize_header(alias)
        for other, aliases in COLUMN_ALIASES.items()
        if other != field
        for alias in aliases
    }
    return {idx for idx, header in enumerate(normalized) if header in other_aliases}


@dataclass(frozen=True)
class ColumnMap:
    """Resolved column index per logical field."""

    indices: dict[str, int]

    def index(self, field: str) -> int:
        return self.indices.get(field, NOT_FOUND)

    def has(self, field: str) -> bool:
        return self.index(field) != NOT_FOUND

    def value(self, row: list[str], field: str) -> str:
        """Cell for a field, or empty string when absent or out of range."""
        idx = self.index(field)
        if idx == NOT_FOUND or idx >= len(row):
            return ""
        return row[idx].strip()

    def missing_required(self) -> list[str]:
        return [f for f in REQUIRED_FIELDS if not self.has(f)]


def resolve_columns(headers: list[str]) -> ColumnMap:
    """Resolve every known field against a header row."""
    return ColumnMap(indices={field: find_column_index(headers, field) for field in COLUMN_ALIASES})
