"""Tests for the CSV import orchestrator."""
import random

import pytest

from tradethrottle.config.settings import ImportSettings
from tradethrottle.ingest.csv_importer import (
    CsvImporter,
    CsvImportError,
    import_csv,
    preview_csv,
    preview_csv_extended,
)
from tradethrottle.ingest.models import CsvFormat, DateRange, FormatConfidence, OrderType

FILLS_HEADER = "Symbol,Side,Status,Filled Qty,Avg Price,Filled Time,Order No.,Commission"

FILLS_CSV = f"""{FILLS_HEADER}
AAPL,Buy,Filled,100,$185.50,01/22/2026 09:31:00 EST,1001,1.00
AAPL,Sell,Filled,100,186.00,01/22/2026 10:15:00 EST,1002,(1.00)
TSLA,Buy,Filled,10,"1,250.00",01/23/2026 09:45:00 EST,1003,0.50
"""

RECORDS_CSV = """Name,Symbol,Side,Status,Filled,Total Qty,Price,Avg Price,Time-in-Force,Placed Time,Filled Time
Apple Inc,AAPL,Buy,Filled,100,100,@185.50,185.50,DAY,01/22/2026 09:30:55 EST,01/22/2026 09:31:00 EST
Apple Inc,AAPL,Sell,Pending,0,100,@180.00,,GTC,01/22/2026 09:32:00 EST,
Apple Inc,AAPL,Sell,Cancelled,0,100,@190.00,,DAY,01/22/2026 09:32:00 EST,
"""


def warning_codes(result) -> list[str]:
    """Collect warning codes from an import result."""
    return [w.code for w in result.warnings]


class TestImportCsv:
    """Tests for a well-formed fills export."""

    def test_imports_all_fills(self):
        """Test every valid row becomes a fill."""
        result = import_csv(FILLS_CSV)

        assert result.success is True
        assert result.errors == []
        assert [f.order_id for f in result.fills] == ["1001", "1002", "1003"]
        assert result.fills[1].commission == 1.0
        assert result.fills[2].price == 1250.0

    def test_detects_fills_format(self):
        """Test format detection on an orders-fills export."""
        result = import_csv(FILLS_CSV)

        assert result.detected_format == CsvFormat.ORDERS_FILLS
        assert result.format_confidence == FormatConfidence.HIGH

    def test_stats(self):
        """Test aggregate stats."""
        stats = import_csv(FILLS_CSV).stats

        assert stats.total_rows == 3
        assert stats.valid_fills == 3
        assert stats.skipped_rows == 0
        assert stats.pending_orders == 0
        assert stats.date_range == DateRange(start="2026-01-22", end="2026-01-23")
        assert stats.symbols == ["AAPL", "TSLA"]

    def test_only_optional_column_warnings(self):
        """Test a complete export only notes the absent stop price column."""
        assert warning_codes(import_csv(FILLS_CSV)) == ["missing_stop_price"]


class TestBlockingErrors:
    """Tests for file-level failures."""

    def test_missing_symbol_column(self):
        """Test a missing Symbol column blocks the import."""
        text = "Side,Filled Qty,Avg Price,Filled Time\nBuy,100,185.50,01/22/2026 09:31:00 EST\n"
        result = import_csv(text)

        assert result.success is False
        assert result.fills == []
        assert len(result.errors) == 1
        assert result.errors[0].column == "Symbol"
        assert "Symbol" in result.errors[0].message
        assert result.stats.total_rows == 1

    def test_empty_text_raises(self):
        """Test empty input is rejected."""
        with pytest.raises(CsvImportError):
            import_csv("   ")

    def test_headerless_text_raises(self):
        """Test a blank header row is rejected."""
        with pytest.raises(CsvImportError):
            import_csv(",,\nAAPL,Buy,100")

    def test_header_only_is_empty_result(self):
        """Test a valid header with no rows is success=False, not an error."""
        result = import_csv(FILLS_HEADER)

        assert result.success is False
        assert result.errors == []
        assert "no_fills" in warning_codes(result)


class TestRowPolicies:
    """Tests for row-level routing."""

    def test_partially_filled_row_is_included(self):
        """Test partial fills import with a file-level warning."""
        text = (
            f"{FILLS_HEADER}\n"
            "AAPL,Buy,Partially Filled,50,185.50,01/22/2026 09:31:00 EST,1001,1.00\n"
        )
        result = import_csv(text)

        assert result.success is True
        assert len(result.fills) == 1
        partial = next(w for w in result.warnings if w.code == "partial_fills")
        assert partial.meta == {"rows": [2]}

    def test_cancelled_row_silently_dropped(self):
        """Test cancelled rows are neither fills nor skipped rows."""
        text = FILLS_CSV + "AAPL,Buy,Cancelled,0,,01/22/2026 11:00:00 EST,1004,0\n"
        result = import_csv(text)

        assert len(result.fills) == 3
        assert result.skipped_rows == []
        assert "skipped_rows" not in warning_codes(result)

    def test_invalid_row_skipped_with_all_reasons(self):
        """Test a bad row is skipped while the rest imports."""
        text = FILLS_CSV + ",Hold,Filled,0,abc,garbage,1004,0\n"
        result = import_csv(text)

        assert result.success is True
        assert len(result.fills) == 3
        assert len(result.skipped_rows) == 1
        skipped = result.skipped_rows[0]
        assert skipped.row_index == 5
        assert len(skipped.reasons) == 5
        assert "skipped_rows" in warning_codes(result)

    def test_pending_orders_excluded_from_fills(self):
        """Test pending rows are captured separately."""
        result = import_csv(RECORDS_CSV)

        assert len(result.fills) == 1
        assert len(result.pending_orders) == 1
        pending = result.pending_orders[0]
        assert pending.side.value == "SELL"
        assert pending.limit_price == 180.0
        assert pending.order_type == OrderType.UNKNOWN
        assert result.stats.pending_orders == 1
        assert result.stats.total_rows == 3

    def test_records_format(self):
        """Test an orders-records export resolves Filled as the quantity."""
        result = import_csv(RECORDS_CSV)
        fill = result.fills[0]

        assert result.detected_format == CsvFormat.ORDERS_RECORDS
        assert fill.quantity == 100.0
        assert fill.total_quantity == 100.0
        assert fill.placed_time is not None
        assert fill.order_id.startswith("auto_")
        assert "missing_order_id" in warning_codes(result)
        assert "missing_commission" in warning_codes(result)

    def test_duplicate_rows_collapse(self):
        """Test identical rows in one file produce one fill."""
        line = "AAPL,Buy,Filled,100,185.50,01/22/2026 09:31:00 EST,1001,1.00"
        result = import_csv(f"{FILLS_HEADER}\n{line}\n{line}\n")

        assert len(result.fills) == 1
        duplicates = next(w for w in result.warnings if w.code == "duplicate_fills")
        assert duplicates.meta == {"rows": [3]}

    def test_market_date_from_literal_text(self):
        """Test the printed date wins over time-zone conversion."""
        text = f"{FILLS_HEADER}\nAAPL,Buy,Filled,100,185.50,01/22/2026 23:30:00 PST,1001,0\n"
        fill = import_csv(text).fills[0]

        assert fill.market_date == "2026-01-22"

    def test_accounting_commission_with_outer_currency_symbol(self):
        """Test a $(1.25) commission imports as 1.25 with no warning."""
        text = f"{FILLS_HEADER}\nAAPL,Buy,Filled,100,185.50,01/22/2026 09:31:00 EST,1001,$(1.25)\n"
        result = import_csv(text)

        assert result.fills[0].commission == pytest.approx(1.25)
        assert "unreadable_commission" not in warning_codes(result)

    def test_unreadable_commission_reported(self):
        """Test a present but unreadable commission is 0 with an info warning."""
        text = (
            f"{FILLS_HEADER}\n"
            "AAPL,Buy,Filled,100,185.50,01/22/2026 09:31:00 EST,1001,abc\n"
            "AAPL,Sell,Filled,100,186.00,01/22/2026 10:15:00 EST,1002,--\n"
        )
        result = import_csv(text)

        assert [f.commission for f in result.fills] == [0.0, 0.0]
        warning = next(w for w in result.warnings if w.code == "unreadable_commission")
        assert warning.level == "info"
        assert warning.meta == {"rows": [2]}


class TestOrdering:
    """Tests for sort order, stability and determinism."""

    def test_sorted_by_time_then_row(self):
        """Test fills sort by time with ties kept in row order."""
        text = (
            f"{FILLS_HEADER}\n"
            "AAPL,Buy,Filled,100,185.50,01/22/2026 10:00:00 EST,1,0\n"
            "MSFT,Buy,Filled,10,400.00,01/22/2026 09:31:00 EST,2,0\n"
            "NVDA,Buy,Filled,10,140.00,01/22/2026 09:31:00 EST,3,0\n"
        )
        result = import_csv(text)

        assert [f.symbol for f in result.fills] == ["MSFT", "NVDA", "AAPL"]
        assert [f.row_index for f in result.fills] == [3, 4, 2]

    def test_deterministic(self):
        """Test repeated imports produce identical results."""
        assert import_csv(FILLS_CSV) == import_csv(FILLS_CSV)

    def test_fingerprints_independent_of_row_order(self):
        """Test shuffled exports yield the same fingerprint set."""
        header, *rows = FILLS_CSV.strip().split("\n")
        shuffled = rows[:]
        random.Random(7).shuffle(shuffled)

        original = {f.fingerprint for f in import_csv(FILLS_CSV).fills}
        reordered = {f.fingerprint for f in import_csv("\n".join([header, *shuffled])).fills}

        assert original == reordered


class TestSettings:
    """Tests for ImportSettings wiring."""

    def test_market_timezone_applies_to_zoneless_times(self):
        """Test the configured zone is used for naive timestamps."""
        text = f"{FILLS_HEADER}\nAAPL,Buy,Filled,100,185.50,2026-01-22 09:31:00,1001,0\n"
        importer = CsvImporter(ImportSettings(market_timezone="UTC"))
        fill = importer.import_csv(text).fills[0]

        assert fill.filled_time.utcoffset().total_seconds() == 0


class TestPreview:
    """Tests for CSV previews."""

    def test_window(self):
        """Test offset and limit select a window of rows."""
        preview = preview_csv(FILLS_CSV, offset=1, limit=1)

        assert preview.headers[0] == "Symbol"
        assert preview.rows == [["AAPL", "Sell", "Filled", "100", "186.00",
                                 "01/22/2026 10:15:00 EST", "1002", "(1.00)"]]
        assert preview.total_rows == 3
        assert preview.has_required_columns is True
        assert preview.missing_columns == []

    def test_default_limit_from_settings(self):
        """Test preview_rows caps the window."""
        preview = CsvImporter(ImportSettings(preview_rows=2)).preview_csv(FILLS_CSV)
        assert len(preview.rows) == 2

    def test_missing_columns(self):
        """Test missing required columns are reported by display name."""
        preview = preview_csv("Side,Qty\nBuy,1\n")

        assert preview.has_required_columns is False
        assert preview.missing_columns == ["Symbol", "Avg Price", "Filled Time"]

    def test_empty_text(self):
        """Test empty input yields an empty preview."""
        preview = preview_csv("")

        assert preview.headers == []
        assert preview.total_rows == 0
        assert preview.has_required_columns is False

    def test_extended(self):
        """Test the extended preview carries detection and all rows."""
        preview = preview_csv_extended(RECORDS_CSV, limit=1)

        assert preview.detected_format == CsvFormat.ORDERS_RECORDS
        assert preview.format_confidence == FormatConfidence.HIGH
        assert len(preview.rows) == 1
        assert len(preview.all_rows) == 3
