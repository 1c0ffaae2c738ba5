# tradethrottle/ingest/fill_normalizer.py
"""Turn one tokenized CSV row into a fill, a pending order, or a skip record."""
import logging
from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum

from tradethrottle.dates.date_key import MARKET_TZ
from tradethrottle.ingest.columns import ColumnMap
from tradethrottle.ingest.fingerprint import (
    fill_fingerprint,
    fill_id,
    pending_order_fingerprint,
    synthetic_order_id,
)
from tradethrottle.ingest.models import Fill, OrderType, PendingOrder, Side, SkippedRow
from tradethrottle.ingest.value_parsers import (
    MARKET_OPEN,
    FieldResult,
    RowStatus,
    classify_status,
    is_placeholder,
    market_date_for,
    normalize_status,
    parse_datetime,
    parse_number,
    parse_side,
)

logger = logging.getLogger(__name__)


class RowKind(str, Enum):
    """Where a data row ended up."""

    FILL = "fill"
    PENDING = "pending"
    SKIPPED = "skipped"
    DROPPED = "dropped"
    BLANK = "blank"


@dataclass(frozen=True)
class RowOutcome:
    """Result of normalizing one data row."""

    kind: RowKind
    status: RowStatus | None = None
    fill: Fill | None = None
    pending: PendingOrder | None = None
    skipped: SkippedRow | None = None
    unreadable_commission: bool = False


def raw_row_data(headers: list[str], row: list[str]) -> dict[str, str]:
    """Map header names to the raw cells of a row."""
    return {
        (header or f"column_{idx + 1}"): (row[idx] if idx < len(row) else "")
        for idx, header in enumerate(headers)
    }


def _symbol(columns: ColumnMap, row: list[str]) -> FieldResult[str]:
    symbol = columns.value(row, "symbol").upper()
    if not symbol:
        return FieldResult.failure("Missing symbol")
    return FieldResult.success(symbol)


def _side(columns: ColumnMap, row: list[str]) -> FieldResult[Side]:
    raw = columns.value(row, "side")
    if not raw:
        return FieldResult.failure("Missing side")
    side = parse_side(raw)
    if side is None:
        return FieldResult.failure(f"Invalid side '{raw}' (must be BUY or SELL)")
    return FieldResult.success(side)


def _positive(columns: ColumnMap, row: list[str], field: str, label: str) -> FieldResult[float]:
    raw = columns.value(row, field)
    value = parse_number(raw)
    if value is None:
        return FieldResult.failure(f"Invalid {label} '{raw}'")
    if value <= 0:
        return FieldResult.failure(f"Invalid {label} '{raw}' (must be positive)")
    return FieldResult.success(value)


def _filled_time(
    columns: ColumnMap, row: list[str], market_tz: str, default_time: time
) -> FieldResult[datetime]:
    raw = columns.value(row, "time")
    if not raw:
        return FieldResult.failure("Missing filled time")
    moment = parse_datetime(raw, market_tz, default_time)
    if moment is None:
        return FieldResult.failure(f"Invalid date/time '{raw}'")
    return FieldResult.success(moment)


def _optional_positive(columns: ColumnMap, row: list[str], field: str) -> float | None:
    value = parse_number(columns.value(row, field))
    return value if value is not None and value > 0 else None


def _infer_order_type(type_text: str, stop_price: float | None) -> OrderType:
    text = type_text.lower()
    if "stop" in text or text == "stp":
        return OrderType.STOP
    if "limit" in text or text == "lmt":
        return OrderType.LIMIT
    if "market" in text or text == "mkt":
        return OrderType.MARKET
    if stop_price is not None:
        return OrderType.STOP
    return OrderType.UNKNOWN


def _pending_order(
    row: list[str],
    row_index: int,
    columns: ColumnMap,
    status_text: str,
    market_tz: str,
    default_time: time,
) -> RowOutcome:
    symbol = columns.value(row, "symbol").upper()
    side = parse_side(columns.value(row, "side"))
    if not symbol or side is None:
        logger.debug(f"Row {row_index}: pending order without symbol/side dropped")
        return RowOutcome(kind=RowKind.DROPPED, status=RowStatus.PENDING)

    quantity = (
        _optional_positive(columns, row, "total_quantity")
        or _optional_positive(columns, row, "quantity")
        or 0.0
    )
    stop_price = _optional_positive(columns, row, "stop_price")
    limit_price = _optional_positive(columns, row, "limit_price")
    order_type = _infer_order_type(columns.value(row, "order_type"), stop_price)
    if order_type == OrderType.STOP and stop_price is None:
        stop_price = limit_price

    placed_raw = columns.value(row, "placed_time") or columns.value(row, "time")
    placed_time = parse_datetime(placed_raw, market_tz, default_time)
    price = limit_price if limit_price is not None else stop_price

    pending = PendingOrder(
        symbol=symbol,
        side=side,
        quantity=quantity,
        price=price,
        stop_price=stop_price,
        limit_price=limit_price,
        placed_time=placed_time,
        order_type=order_type,
        status=status_text,
        row_index=row_index,
        fingerprint=pending_order_fingerprint(
            symbol, side, quantity, price, stop_price, limit_price, placed_time, order_type.value
        ),
    )
    return RowOutcome(kind=RowKind.PENDING, status=RowStatus.PENDING, pending=pending)


def normalize_row(
    row: list[str],
    row_index: int,
    headers: list[str],
    columns: ColumnMap,
    market_tz: str = MARKET_TZ,
    default_time: time = MARKET_OPEN,
) -> RowOutcome:
    """Normalize one data row.

    Rows whose status is neither filled, partial nor pending are dropped
    without a skip record. Fill candidates are validated field by field and
    every failure is collected before deciding to skip.

    Args:
        row: Tokenized cells.
        row_index: 1-indexed row number in the file.
        headers: Header row, used for skip diagnostics.
        columns: Resolved column map.
        market_tz: Zone for zone-less timestamps.
        default_time: Time assigned to date-only timestamps.

    Returns:
        RowOutcome describing where the row went.
    """
    if all(not cell.strip() for cell in row):
        return RowOutcome(kind=RowKind.BLANK)

    status_raw = columns.value(row, "status")
    status = classify_status(status_raw)
    status_text = normalize_status(status_raw)

    if status == RowStatus.DROPPED:
        logger.debug(f"Row {row_index}: status '{status_raw}' dropped")
        return RowOutcome(kind=RowKind.DROPPED, status=status)

    if status == RowStatus.PENDING:
        return _pending_order(row, row_index, columns, status_text, market_tz, default_time)

    symbol = _symbol(columns, row)
    side = _side(columns, row)
    quantity = _positive(columns, row, "quantity", "quantity")
    price = _positive(columns, row, "price", "price")
    filled_time = _filled_time(columns, row, market_tz, default_time)

    reasons = [
        reason
        for result in (symbol, side, quantity, price, filled_time)
        for reason in result.reasons
    ]
    if reasons:
        return RowOutcome(
            kind=RowKind.SKIPPED,
            status=status,
            skipped=SkippedRow(
                row_index=row_index,
                reasons=reasons,
                raw_data=raw_row_data(headers, row),
            ),
        )

    fingerprint = fill_fingerprint(
        symbol.value, side.value, quantity.value, price.value, filled_time.value
    )
    commission_raw = columns.value(row, "commission")
    commission = parse_number(commission_raw)
    unreadable_commission = commission is None and not is_placeholder(commission_raw)
    if unreadable_commission:
        logger.debug(f"Row {row_index}: unreadable commission '{commission_raw}' treated as 0")

    fill = Fill(
        id=fill_id(fingerprint),
        symbol=symbol.value,
        side=side.value,
        quantity=quantity.value,
        price=price.value,
        filled_time=filled_time.value,
        order_id=columns.value(row, "order_id") or synthetic_order_id(fingerprint),
        commission=abs(commission or 0.0),
        market_date=market_date_for(columns.value(row, "time"), filled_time.value, market_tz),
        row_index=row_index,
        fingerprint=fingerprint,
        stop_price=_optional_positive(columns, row, "stop_price"),
        placed_time=parse_datetime(columns.value(row, "placed_time"), market_tz, default_time),
        total_quantity=_optional_positive(columns, row, "total_quantity"),
        status=status_text or None,
    )
    return RowOutcome(
        kind=RowKind.FILL,
        status=status,
        fill=fill,
        unreadable_commission=unreadable_commission,
    )
