# tradethrottle/journal/daily_equity.py
"""Daily equity curve built from closed trades."""
from collections import defaultdict
from collections.abc import Iterable

from tradethrottle.dates.date_key import normalize_date_key
from tradethrottle.journal.models import Adjustment, DailyEquity
from tradethrottle.risk.models import Trade


def calculate_daily_equity(
    trades: Iterable[Trade],
    starting_equity: float,
    adjustments: Iterable[Adjustment] | None = None,
) -> list[DailyEquity]:
    """Fold closed-trade P&L into a running equity curve.

    Trades are grouped by exit day and days are walked in ascending order.
    Peak equity is the running maximum of account equity; drawdown is
    (equity - peak) / peak and is therefore always <= 0.

    Args:
        trades: Trades; open trades are ignored.
        starting_equity: Equity before the first closed trade.
        adjustments: Optional deposits/withdrawals; each one shifts account
            equity from the first row dated on or after it.

    Returns:
        One DailyEquity per day with at least one closed trade.
    """
    by_day: dict[str, dict[str, float]] = defaultdict(
        lambda: {"pnl": 0.0, "trades": 0, "wins": 0, "losses": 0}
    )

    for trade in trades:
        day = normalize_date_key(trade.exit_day_key)
        if day is None:
            continue
        bucket = by_day[day]
        bucket["pnl"] += trade.realized_pnl
        bucket["trades"] += 1
        if trade.realized_pnl > 0:
            bucket["wins"] += 1
        elif trade.realized_pnl < 0:
            bucket["losses"] += 1

    if not by_day:
        return []

    pending_adjustments = sorted(
        (adj for adj in adjustments or [] if normalize_date_key(adj.date) is not None),
        key=lambda adj: (normalize_date_key(adj.date), adj.id),
    )

    trading_equity = starting_equity
    total_adjustment = 0.0
    cumulative_pnl = 0.0
    peak_equity = starting_equity
    rows: list[DailyEquity] = []

    for day in sorted(by_day):
        bucket = by_day[day]

        day_adjustment = 0.0
        while pending_adjustments and normalize_date_key(pending_adjustments[0].date) <= day:
            day_adjustment += pending_adjustments.pop(0).amount
        total_adjustment += day_adjustment

        cumulative_pnl += bucket["pnl"]
        trading_equity += bucket["pnl"]
        account_equity = trading_equity + total_adjustment

        peak_equity = max(peak_equity, account_equity)
        drawdown_pct = (account_equity - peak_equity) / peak_equity if peak_equity > 0 else 0.0

        rows.append(
            DailyEquity(
                date=day,
                trading_equity=trading_equity,
                account_equity=account_equity,
                peak_equity=peak_equity,
                drawdown_pct=drawdown_pct,
                day_pnl=bucket["pnl"],
                cumulative_pnl=cumulative_pnl,
                adjustment=day_adjustment,
                trade_count=int(bucket["trades"]),
                win_count=int(bucket["wins"]),
                loss_count=int(bucket["losses"]),
            )
        )

    return rows
