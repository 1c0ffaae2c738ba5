# tradethrottle/ingest/format_detector.py
"""Classify a CSV export flavor from which optional columns are present."""
from collections.abc import Callable
from dataclasses import dataclass

from tradethrottle.ingest.columns import ColumnMap
from tradethrottle.ingest.models import CsvFormat, FormatConfidence


@dataclass(frozen=True)
class FormatFeatures:
    """Presence flags for the columns that distinguish export flavors."""

    has_order_id: bool
    has_commission: bool
    has_name: bool
    has_total_quantity: bool
    has_placed_time: bool
    has_time_in_force: bool

    @classmethod
    def from_columns(cls, columns: ColumnMap) -> "FormatFeatures":
        return cls(
            has_order_id=columns.has("order_id"),
            has_commission=columns.has("commission"),
            has_name=columns.has("name"),
            has_total_quantity=columns.has("total_quantity"),
            has_placed_time=columns.has("placed_time"),
            has_time_in_force=columns.has("time_in_force"),
        )

    @property
    def records_column_count(self) -> int:
        return sum(
            [self.has_name, self.has_total_quantity, self.has_placed_time, self.has_time_in_force]
        )


@dataclass(frozen=True)
class FormatRule:
    """One row of the detection table."""

    name: str
    matches: Callable[[FormatFeatures], bool]
    format: CsvFormat
    confidence: FormatConfidence


@dataclass(frozen=True)
class FormatDetection:
    format: CsvFormat
    confidence: FormatConfidence
    rule: str


# Evaluated top-down; the first matching rule wins.
FORMAT_RULES: list[FormatRule] = [
    FormatRule(
        name="fills_complete",
        matches=lambda f: f.has_order_id and f.has_commission,
        format=CsvFormat.ORDERS_FILLS,
        confidence=FormatConfidence.HIGH,
    ),
    FormatRule(
        name="records_complete",
        matches=lambda f: f.records_column_count == 4,
        format=CsvFormat.ORDERS_RECORDS,
        confidence=FormatConfidence.HIGH,
    ),
    FormatRule(
        name="records_partial",
        matches=lambda f: f.records_column_count >= 2,
        format=CsvFormat.ORDERS_RECORDS,
        confidence=FormatConfidence.MEDIUM,
    ),
    FormatRule(
        name="fills_partial",
        matches=lambda f: f.has_order_id or f.has_commission,
        format=CsvFormat.ORDERS_FILLS,
        confidence=FormatConfidence.MEDIUM,
    ),
]

_UNKNOWN = FormatDetection(format=CsvFormat.UNKNOWN, confidence=FormatConfidence.LOW, rule="fallback")


def classify_features(features: FormatFeatures) -> FormatDetection:
    """Apply FORMAT_RULES to a feature vector."""
    for rule in FORMAT_RULES:
        if rule.matches(features):
            return FormatDetection(format=rule.format, confidence=rule.confidence, rule=rule.name)
    return _UNKNOWN


def detect_format(columns: ColumnMap) -> FormatDetection:
    """Classify the export flavor of a resolved header row."""
    return classify_features(FormatFeatures.from_columns(columns))
