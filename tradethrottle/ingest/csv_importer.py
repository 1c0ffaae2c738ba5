# tradethrottle/ingest/csv_importer.py
"""Orchestrates tokenizing, column resolution and row normalization of broker CSVs."""
import logging

from tradethrottle.config.settings import ImportSettings
from tradethrottle.ingest.columns import FIELD_LABELS, REQUIRED_FIELDS, ColumnMap, resolve_columns
from tradethrottle.ingest.fill_normalizer import RowKind, normalize_row
from tradethrottle.ingest.fingerprint import sort_fills
from tradethrottle.ingest.format_detector import FormatDetection, detect_format
from tradethrottle.ingest.models import (
    CSVPreview,
    CSVPreviewExtended,
    DateRange,
    Fill,
    FormatConfidence,
    ImportResult,
    ImportStats,
    ImportWarning,
    PendingOrder,
    SkippedRow,
    ValidationError,
)
from tradethrottle.ingest.tokenizer import tokenize_csv
from tradethrottle.ingest.value_parsers import RowStatus

logger = logging.getLogger(__name__)

HEADER_ROW = 1


class CsvImportError(ValueError):
    """Raised when CSV text is empty or has no header row."""


def _is_blank(row: list[str]) -> bool:
    return all(not cell.strip() for cell in row)


def _split_header(text: str) -> tuple[list[str], list[list[str]]]:
    rows = tokenize_csv(text)
    if not rows:
        raise CsvImportError("CSV file is empty")
    headers = rows[0]
    if _is_blank(headers):
        raise CsvImportError("CSV file has no header row")
    return headers, rows[1:]


class CsvImporter:
    """Imports broker order exports into normalized fills.

    Never raises for malformed cell values; rows that fail validation are
    reported as skipped rows and the rest of the file still imports.
    """

    def __init__(self, settings: ImportSettings | None = None) -> None:
        """Initialize the importer.

        Args:
            settings: Import settings; defaults apply when omitted.
        """
        self._settings = settings or ImportSettings()

    def import_csv(self, text: str) -> ImportResult:
        """Import CSV text.

        Args:
            text: Full CSV text including the header row.

        Returns:
            ImportResult; success is True iff at least one fill was produced.

        Raises:
            CsvImportError: If the text is empty or has no header row.
        """
        headers, data_rows = _split_header(text)
        columns = resolve_columns(headers)
        detection = detect_format(columns)
        total_rows = sum(1 for row in data_rows if not _is_blank(row))

        missing = columns.missing_required()
        if missing:
            errors = [
                ValidationError(
                    row=HEADER_ROW,
                    column=FIELD_LABELS[field],
                    message=f"Required column '{FIELD_LABELS[field]}' not found",
                )
                for field in missing
            ]
            logger.warning(
                f"CSV import blocked, missing columns: {', '.join(e.column for e in errors)}"
            )
            return ImportResult(
                success=False,
                fills=[],
                errors=errors,
                warnings=[],
                skipped_rows=[],
                pending_orders=[],
                detected_format=detection.format,
                format_confidence=detection.confidence,
                stats=ImportStats(
                    total_rows=total_rows,
                    valid_fills=0,
                    skipped_rows=0,
                    pending_orders=0,
                    date_range=None,
                    symbols=[],
                ),
            )

        fills: list[Fill] = []
        seen: set[str] = set()
        duplicate_rows: list[int] = []
        partial_rows: list[int] = []
        commission_rows: list[int] = []
        skipped: list[SkippedRow] = []
        pending: list[PendingOrder] = []
        dropped = 0

        for offset, row in enumerate(data_rows):
            row_index = HEADER_ROW + offset + 1
            outcome = normalize_row(
                row,
                row_index,
                headers,
                columns,
                market_tz=self._settings.market_timezone,
                default_time=self._settings.default_time,
            )

            if outcome.kind == RowKind.FILL:
                fill = outcome.fill
                if fill.fingerprint in seen:
                    duplicate_rows.append(row_index)
                    continue
                seen.add(fill.fingerprint)
                fills.append(fill)
                if outcome.status == RowStatus.PARTIAL:
                    partial_rows.append(row_index)
                if outcome.unreadable_commission:
                    commission_rows.append(row_index)
            elif outcome.kind == RowKind.PENDING:
                pending.append(outcome.pending)
            elif outcome.kind == RowKind.SKIPPED:
                skipped.append(outcome.skipped)
            elif outcome.kind == RowKind.DROPPED:
                dropped += 1

        fills = sort_fills(fills)
        warnings = self._collect_warnings(
            columns, detection, fills, skipped, partial_rows, duplicate_rows, commission_rows
        )
        stats = ImportStats(
            total_rows=total_rows,
            valid_fills=len(fills),
            skipped_rows=len(skipped),
            pending_orders=len(pending),
            date_range=_date_range(fills),
            symbols=sorted({f.symbol for f in fills}),
        )

        logger.info(
            f"Imported {stats.valid_fills} fills from {total_rows} rows "
            f"({stats.skipped_rows} skipped, {stats.pending_orders} pending, {dropped} dropped), "
            f"format={detection.format.value} ({detection.confidence.value})"
        )

        return ImportResult(
            success=len(fills) > 0,
            fills=fills,
            errors=[],
            warnings=warnings,
            skipped_rows=skipped,
            pending_orders=pending,
            detected_format=detection.format,
            format_confidence=detection.confidence,
            stats=stats,
        )

    def _collect_warnings(
        self,
        columns: ColumnMap,
        detection: FormatDetection,
        fills: list[Fill],
        skipped: list[SkippedRow],
        partial_rows: list[int],
        duplicate_rows: list[int],
        commission_rows: list[int],
    ) -> list[ImportWarning]:
        warnings: list[ImportWarning] = []

        if not columns.has("commission"):
            warnings.append(
                ImportWarning(
                    code="missing_commission",
                    message="No commission column found; commissions assumed to be 0",
                    level="info",
                )
            )
        if not columns.has("order_id"):
            warnings.append(
                ImportWarning(
                    code="missing_order_id",
                    message="No order number column found; order ids generated from fill content",
                    level="info",
                )
            )
        if not columns.has("stop_price"):
            warnings.append(
                ImportWarning(
                    code="missing_stop_price",
                    message="No stop price column found; stops must be entered manually",
                    level="info",
                )
            )
        if commission_rows:
            warnings.append(
                ImportWarning(
                    code="unreadable_commission",
                    message=(
                        f"{len(commission_rows)} commission value(s) could not be read; "
                        "assumed to be 0"
                    ),
                    level="info",
                    meta={"rows": commission_rows},
                )
            )
        if detection.confidence == FormatConfidence.LOW:
            warnings.append(
                ImportWarning(
                    code="low_format_confidence",
                    message="Could not recognize the export format; check the column mapping",
                )
            )
        if partial_rows:
            warnings.append(
                ImportWarning(
                    code="partial_fills",
                    message=f"{len(partial_rows)} partially filled order(s) imported as fills",
                    meta={"rows": partial_rows},
                )
            )
        if duplicate_rows:
            warnings.append(
                ImportWarning(
                    code="duplicate_fills",
                    message=f"{len(duplicate_rows)} duplicate fill(s) ignored",
                    meta={"rows": duplicate_rows},
                )
            )
        if skipped:
            warnings.append(
                ImportWarning(
                    code="skipped_rows",
                    message=f"{len(skipped)} row(s) skipped due to validation errors",
                    meta={"rows": [s.row_index for s in skipped]},
                )
            )
        if not fills:
            warnings.append(
                ImportWarning(
                    code="no_fills",
                    message="No valid fills found; fix the export and import again",
                )
            )

        return warnings

    def preview_csv(self, text: str, offset: int = 0, limit: int | None = None) -> CSVPreview:
        """Headers and a window of non-blank data rows.

        Empty text yields an empty preview rather than an error.
        """
        headers, data_rows, missing = self._preview_parts(text)
        window = self._window(data_rows, offset, limit)
        return CSVPreview(
            headers=headers,
            rows=window,
            total_rows=len(data_rows),
            has_required_columns=not missing,
            missing_columns=missing,
        )

    def preview_csv_extended(
        self, text: str, offset: int = 0, limit: int | None = None
    ) -> CSVPreviewExtended:
        """Preview plus detected format and every data row."""
        headers, data_rows, missing = self._preview_parts(text)
        detection = detect_format(resolve_columns(headers))
        return CSVPreviewExtended(
            headers=headers,
            rows=self._window(data_rows, offset, limit),
            total_rows=len(data_rows),
            has_required_columns=not missing,
            missing_columns=missing,
            detected_format=detection.format,
            format_confidence=detection.confidence,
            all_rows=data_rows,
        )

    def _preview_parts(self, text: str) -> tuple[list[str], list[list[str]], list[str]]:
        try:
            headers, rows = _split_header(text)
        except CsvImportError:
            return [], [], [FIELD_LABELS[f] for f in REQUIRED_FIELDS]
        columns = resolve_columns(headers)
        missing = [FIELD_LABELS[f] for f in columns.missing_required()]
        return headers, [row for row in rows if not _is_blank(row)], missing

    def _window(self, rows: list[list[str]], offset: int, limit: int | None) -> list[list[str]]:
        start = max(offset, 0)
        size = limit if limit is not None else self._settings.preview_rows
        return rows[start:start + max(size, 0)]


def _date_range(fills: list[Fill]) -> DateRange | None:
    if not fills:
        return None
    days = [f.market_date for f in fills]
    return DateRange(start=min(days), end=max(days))


def import_csv(text: str, settings: ImportSettings | None = None) -> ImportResult:
    """Import CSV text with a one-off CsvImporter."""
    return CsvImporter(settings).import_csv(text)


def preview_csv(
    text: str, offset: int = 0, limit: int | None = None, settings: ImportSettings | None = None
) -> CSVPreview:
    return CsvImporter(settings).preview_csv(text, offset, limit)


def preview_csv_extended(
    text: str, offset: int = 0, limit: int | None = None, settings: ImportSettings | None = None
) -> CSVPreviewExtended:
    return CsvImporter(settings).preview_csv_extended(text, offset, limit)
