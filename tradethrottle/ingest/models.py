# tradethrottle/ingest/models.py
"""Data models for CSV ingestion."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Side(str, Enum):
    """Execution side of a fill."""

    BUY = "BUY"
    SELL = "SELL"


class CsvFormat(str, Enum):
    """Known broker export flavors."""

    ORDERS_FILLS = "orders-fills"
    ORDERS_RECORDS = "orders-records"
    UNKNOWN = "unknown"


class FormatConfidence(str, Enum):
    """Confidence of a format classification."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class OrderType(str, Enum):
    """Inferred type of a pending order."""

    STOP = "STOP"
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class Fill:
    """One executed trade leg normalized from a CSV row.

    Attributes:
        id: Stable id derived from the fingerprint.
        symbol: Upper-case ticker.
        side: BUY or SELL.
        quantity: Filled quantity (> 0).
        price: Average fill price (> 0).
        filled_time: Timezone-aware execution timestamp.
        order_id: Broker order id, or a synthetic id from the fingerprint.
        commission: Commission as a non-negative amount.
        market_date: Market-local calendar day (YYYY-MM-DD).
        row_index: 1-indexed CSV row the fill came from.
        fingerprint: Content hash of (symbol, side, quantity, price, time).
        stop_price: Stop price, when the export carries one.
        placed_time: Order placement time, when present.
        total_quantity: Ordered quantity, when present.
        status: Normalized status text, when present.
    """

    id: str
    symbol: str
    side: Side
    quantity: float
    price: float
    filled_time: datetime
    order_id: str
    commission: float
    market_date: str
    row_index: int
    fingerprint: str
    stop_price: float | None = None
    placed_time: datetime | None = None
    total_quantity: float | None = None
    status: str | None = None


@dataclass(frozen=True)
class PendingOrder:
    """An unfilled working order kept for stop/target inference."""

    symbol: str
    side: Side
    quantity: float
    price: float | None
    stop_price: float | None
    limit_price: float | None
    placed_time: datetime | None
    order_type: OrderType
    status: str
    row_index: int
    fingerprint: str


@dataclass
class SkippedRow:
    """A data row rejected during normalization.

    Attributes:
        row_index: 1-indexed row number in the file (header is row 1).
        reasons: Every validation failure found on the row.
        raw_data: Raw cell values keyed by header.
    """

    row_index: int
    reasons: list[str]
    raw_data: dict[str, str]


@dataclass(frozen=True)
class ValidationError:
    """A blocking, file-level import error."""

    row: int
    column: str
    message: str
    value: str = ""


@dataclass(frozen=True)
class ImportWarning:
    """A non-blocking import notice.

    Attributes:
        code: Stable identifier (e.g. "partial_fills").
        message: Human-readable text.
        level: "info" or "warning".
        row: Row number the warning refers to, if any.
        meta: Extra structured detail.
    """

    code: str
    message: str
    level: str = "warning"
    row: int | None = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str


@dataclass(frozen=True)
class ImportStats:
    """Aggregate counts for one import."""

    total_rows: int
    valid_fills: int
    skipped_rows: int
    pending_orders: int
    date_range: DateRange | None
    symbols: list[str]


@dataclass
class ImportResult:
    """Full output of one CSV import.

    success is True iff at least one fill was produced.
    """

    success: bool
    fills: list[Fill]
    errors: list[ValidationError]
    warnings: list[ImportWarning]
    skipped_rows: list[SkippedRow]
    pending_orders: list[PendingOrder]
    detected_format: CsvFormat
    format_confidence: FormatConfidence
    stats: ImportStats


@dataclass
class CSVPreview:
    """Header and a window of rows for display before importing."""

    headers: list[str]
    rows: list[list[str]]
    total_rows: int
    has_required_columns: bool
    missing_columns: list[str]


@dataclass
class CSVPreviewExtended(CSVPreview):
    """Preview with format detection and every data row."""

    detected_format: CsvFormat = CsvFormat.UNKNOWN
    format_confidence: FormatConfidence = FormatConfidence.LOW
    all_rows: list[list[str]] = field(default_factory=list)
