"""Restart Throttle risk engine."""

from .explain import ModeExplanation, explain_mode
from .forecast import forecast_next
from .models import (
    CurrentRiskResult,
    DailyDirective,
    DirectiveTimeline,
    ForecastBranch,
    ModeSwitch,
    RiskAssignment,
    RiskForecast,
    RiskMode,
    StrategyConfig,
    ThrottleState,
    Trade,
    TradeOutcome,
)
from .throttle import apply_daily_directives, get_current_risk

__all__ = [
    "CurrentRiskResult",
    "DailyDirective",
    "DirectiveTimeline",
    "ForecastBranch",
    "ModeExplanation",
    "ModeSwitch",
    "RiskAssignment",
    "RiskForecast",
    "RiskMode",
    "StrategyConfig",
    "ThrottleState",
    "Trade",
    "TradeOutcome",
    "apply_daily_directives",
    "explain_mode",
    "forecast_next",
    "get_current_risk",
]
