"""Ingest module for broker CSV exports."""

from .csv_importer import (
    CsvImporter,
    CsvImportError,
    import_csv,
    preview_csv,
    preview_csv_extended,
)
from .fingerprint import MergeResult, fill_fingerprint, merge_fills
from .models import (
    CsvFormat,
    CSVPreview,
    CSVPreviewExtended,
    DateRange,
    Fill,
    FormatConfidence,
    ImportResult,
    ImportStats,
    ImportWarning,
    OrderType,
    PendingOrder,
    Side,
    SkippedRow,
    ValidationError,
)

__all__ = [
    "CSVPreview",
    "CSVPreviewExtended",
    "CsvFormat",
    "CsvImportError",
    "CsvImporter",
    "DateRange",
    "Fill",
    "FormatConfidence",
    "ImportResult",
    "ImportStats",
    "ImportWarning",
    "MergeResult",
    "OrderType",
    "PendingOrder",
    "Side",
    "SkippedRow",
    "ValidationError",
    "fill_fingerprint",
    "import_csv",
    "merge_fills",
    "preview_csv",
    "preview_csv_extended",
]
