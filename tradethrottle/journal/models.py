# tradethrottle/journal/models.py
"""Data models for the equity journal."""
from dataclasses import dataclass
from enum import Enum


class AdjustmentType(str, Enum):
    """Kind of manual account adjustment."""

    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    FEE = "Fee"
    CORRECTION = "Correction"


@dataclass(frozen=True)
class Adjustment:
    """A manual change to account equity that is not trading P&L.

    Attributes:
        id: Adjustment identifier.
        date: Day key the adjustment applies to (YYYY-MM-DD).
        type: Adjustment kind.
        amount: Signed dollar amount (withdrawals and fees are negative).
        note: Free-form note.
    """

    id: str
    date: str
    type: AdjustmentType
    amount: float
    note: str = ""


@dataclass(frozen=True)
class DailyEquity:
    """Equity curve row for a day with closed trades."""

    date: str

    # Equity
    trading_equity: float
    account_equity: float
    peak_equity: float
    drawdown_pct: float

    # P&L
    day_pnl: float
    cumulative_pnl: float
    adjustment: float

    # Counts
    trade_count: int
    win_count: int
    loss_count: int


@dataclass
class PerformanceMetrics:
    """Calculated trading performance metrics."""

    total_trades: int
    wins: int
    losses: int
    breakeven: int

    win_rate: float
    total_pnl: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    max_drawdown_pct: float

    current_streak: int
    streak_type: str
    max_consecutive_wins: int
    max_consecutive_losses: int
    ending_equity: float | None
