"""Journal module for equity curves and performance metrics."""

from .daily_equity import calculate_daily_equity
from .metrics_calculator import MetricsCalculator
from .models import Adjustment, AdjustmentType, DailyEquity, PerformanceMetrics

__all__ = [
    "Adjustment",
    "AdjustmentType",
    "DailyEquity",
    "MetricsCalculator",
    "PerformanceMetrics",
    "calculate_daily_equity",
]
