# tradethrottle/journal/metrics_calculator.py
"""Calculator for trading performance metrics."""
from tradethrottle.journal.models import DailyEquity, PerformanceMetrics
from tradethrottle.risk.models import Trade, TradeOutcome


class MetricsCalculator:
    """Calculates trading performance metrics from closed trades."""

    def calculate(
        self,
        trades: list[Trade],
        daily: list[DailyEquity],
    ) -> PerformanceMetrics:
        """Calculate trading metrics from trades and the daily equity curve.

        Args:
            trades: Trades to analyze; open trades are ignored.
            daily: Daily equity rows for the same trades.

        Returns:
            PerformanceMetrics with all calculated values.
        """
        closed_trades = sorted(
            (t for t in trades if t.is_closed),
            key=lambda t: (t.exit_day_key, t.id),
        )

        if not closed_trades:
            return self._empty_metrics(daily)

        winners = [t for t in closed_trades if t.outcome == TradeOutcome.WIN]
        losers = [t for t in closed_trades if t.outcome == TradeOutcome.LOSS]

        total_trades = len(closed_trades)
        win_rate = len(winners) / total_trades

        gross_profit = sum(t.realized_pnl for t in winners)
        gross_loss = abs(sum(t.realized_pnl for t in losers))
        profit_factor = gross_profit / gross_loss if gross_loss > 0 else 0.0

        avg_win = gross_profit / len(winners) if winners else 0.0
        avg_loss = gross_loss / len(losers) if losers else 0.0

        current_streak, streak_type, max_wins, max_losses = self._calculate_streaks(closed_trades)

        return PerformanceMetrics(
            total_trades=total_trades,
            wins=len(winners),
            losses=len(losers),
            breakeven=total_trades - len(winners) - len(losers),
            win_rate=win_rate,
            total_pnl=sum(t.realized_pnl for t in closed_trades),
            avg_win=avg_win,
            avg_loss=avg_loss,
            profit_factor=profit_factor,
            max_drawdown_pct=self._max_drawdown(daily),
            current_streak=current_streak,
            streak_type=streak_type,
            max_consecutive_wins=max_wins,
            max_consecutive_losses=max_losses,
            ending_equity=daily[-1].account_equity if daily else None,
        )

    def _empty_metrics(self, daily: list[DailyEquity]) -> PerformanceMetrics:
        """Return metrics with zero values for an empty trade list."""
        return PerformanceMetrics(
            total_trades=0,
            wins=0,
            losses=0,
            breakeven=0,
            win_rate=0.0,
            total_pnl=0.0,
            avg_win=0.0,
            avg_loss=0.0,
            profit_factor=0.0,
            max_drawdown_pct=0.0,
            current_streak=0,
            streak_type="NONE",
            max_consecutive_wins=0,
            max_consecutive_losses=0,
            ending_equity=daily[-1].account_equity if daily else None,
        )

    def _max_drawdown(self, daily: list[DailyEquity]) -> float:
        """Deepest drawdown on the curve, as a fraction <= 0."""
        if not daily:
            return 0.0
        return min(row.drawdown_pct for row in daily)

    def _calculate_streaks(self, trades: list[Trade]) -> tuple[int, str, int, int]:
        """Calculate current and longest win/loss streaks.

        Breakeven trades end a streak without starting a new one.

        Returns:
            Tuple of (current_streak, streak_type, max_consecutive_wins,
            max_consecutive_losses).
        """
        streak = 0
        streak_type = "NONE"
        max_wins = 0
        max_losses = 0

        for trade in trades:
            outcome = trade.outcome
            if outcome == TradeOutcome.BREAKEVEN:
                streak = 0
                streak_type = "NONE"
                continue

            kind = outcome.value
            streak = streak + 1 if kind == streak_type else 1
            streak_type = kind

            if kind == TradeOutcome.WIN.value:
                max_wins = max(max_wins, streak)
            else:
                max_losses = max(max_losses, streak)

        return streak, streak_type, max_wins, max_losses
