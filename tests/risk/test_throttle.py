"""Tests for the Restart Throttle state machine."""
import logging

import pytest

from tradethrottle.risk.models import RiskMode, StrategyConfig, ThrottleState, Trade
from tradethrottle.risk.throttle import apply_daily_directives, get_current_risk

STRATEGY = StrategyConfig(
    high_mode_risk_pct=0.03,
    low_mode_risk_pct=0.001,
    wins_to_recover=2,
    losses_to_drop=1,
)


def make_trade(
    trade_id: str,
    entry: str | None,
    exit: str | None = None,
    pnl: float = 0.0,
    mode_at_entry: RiskMode | None = None,
) -> Trade:
    """Create a trade for testing."""
    return Trade(
        id=trade_id,
        symbol="AAPL",
        entry_day_key=entry,
        exit_day_key=exit,
        realized_pnl=pnl,
        mode_at_entry=mode_at_entry,
    )


def restart_trace() -> list[Trade]:
    """Loss on day 2, then two LOW-entered wins on days 3 and 4."""
    return [
        make_trade("t1", "2026-01-05", "2026-01-06", -500.0),
        make_trade("t2", "2026-01-07", "2026-01-07", 100.0),
        make_trade("t3", "2026-01-07", "2026-01-08", 50.0),
    ]


class TestRestartTrace:
    """Tests for the canonical drop-and-recover sequence."""

    def test_directives_per_day(self):
        """Test mode, risk and equity for each day of the trace."""
        timeline = apply_daily_directives(restart_trace(), 25000.0, STRATEGY, "2026-01-09")
        days = {d.date: d for d in timeline.directives}

        day1 = days["2026-01-05"]
        assert day1.mode == RiskMode.HIGH
        assert day1.risk_pct == 0.03
        assert day1.allowed_risk_dollars == pytest.approx(750.0)

        assert days["2026-01-06"].mode == RiskMode.HIGH

        day3 = days["2026-01-07"]
        assert day3.mode == RiskMode.LOW
        assert day3.low_wins_progress == 0
        assert day3.equity == pytest.approx(24500.0)
        assert day3.allowed_risk_dollars == pytest.approx(24.5)

        day4 = days["2026-01-08"]
        assert day4.mode == RiskMode.LOW
        assert day4.low_wins_progress == 1

        day5 = days["2026-01-09"]
        assert day5.mode == RiskMode.HIGH
        assert day5.low_wins_progress == 0
        assert day5.equity == pytest.approx(24650.0)

    def test_mode_switches(self):
        """Test both transitions are recorded on the day they happen."""
        timeline = apply_daily_directives(restart_trace(), 25000.0, STRATEGY, "2026-01-09")

        assert [(s.date, s.from_mode, s.to_mode) for s in timeline.mode_switches] == [
            ("2026-01-06", RiskMode.HIGH, RiskMode.LOW),
            ("2026-01-08", RiskMode.LOW, RiskMode.HIGH),
        ]
        assert timeline.mode_switches[1].reason == "2 qualifying wins"

    def test_assignments_locked_at_entry(self):
        """Test each trade keeps the risk in effect on its entry day."""
        timeline = apply_daily_directives(restart_trace(), 25000.0, STRATEGY, "2026-01-09")
        assignments = timeline.assignments

        assert assignments["t1"].mode == RiskMode.HIGH
        assert assignments["t1"].risk_dollars == pytest.approx(750.0)
        assert assignments["t2"].mode == RiskMode.LOW
        assert assignments["t3"].mode == RiskMode.LOW
        assert assignments["t3"].equity == pytest.approx(24500.0)

    def test_no_gaps(self):
        """Test one directive per calendar day through as_of."""
        timeline = apply_daily_directives(restart_trace(), 25000.0, STRATEGY, "2026-01-12")
        dates = [d.date for d in timeline.directives]

        assert dates[0] == "2026-01-05"
        assert dates[-1] == "2026-01-12"
        assert len(dates) == 8

    def test_final_state(self):
        """Test the state carried out of the last day."""
        timeline = apply_daily_directives(restart_trace(), 25000.0, STRATEGY, "2026-01-09")
        assert timeline.final_state == ThrottleState(
            mode=RiskMode.HIGH, low_wins_progress=0, equity=pytest.approx(24650.0)
        )

    def test_directive_for(self):
        """Test lookup by day key."""
        timeline = apply_daily_directives(restart_trace(), 25000.0, STRATEGY, "2026-01-09")

        assert timeline.directive_for("2026-01-07").mode == RiskMode.LOW
        assert timeline.directive_for("2026-02-01") is None


class TestRecoveryRules:
    """Tests for which exits count toward recovery."""

    def test_high_entered_win_after_drop_does_not_count(self):
        """Test a trade opened in HIGH and closed in LOW is not a recovery win."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-06", -100.0),
            make_trade("b", "2026-01-05", "2026-01-07", 200.0),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-08")

        assert timeline.assignments["b"].mode == RiskMode.HIGH
        assert timeline.directive_for("2026-01-08").mode == RiskMode.LOW
        assert timeline.directive_for("2026-01-08").low_wins_progress == 0

    def test_same_day_high_entry_with_loss(self):
        """Test a same-day HIGH entry keeps its HIGH assignment after the drop."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-06", -100.0),
            make_trade("c", "2026-01-06", "2026-01-06", 50.0),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-07")

        assert timeline.assignments["c"].mode == RiskMode.HIGH
        assert timeline.directive_for("2026-01-07").mode == RiskMode.LOW
        assert timeline.directive_for("2026-01-07").low_wins_progress == 0

    def test_breakeven_counts_as_recovery_win(self):
        """Test a LOW-entered breakeven exit advances progress."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-05", -100.0),
            make_trade("b", "2026-01-06", "2026-01-06", 0.0),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-07")
        assert timeline.directive_for("2026-01-07").low_wins_progress == 1

    def test_loss_resets_progress(self):
        """Test a loss in LOW resets the counter."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-05", -100.0),
            make_trade("b", "2026-01-06", "2026-01-06", 40.0),
            make_trade("c", "2026-01-07", "2026-01-07", -10.0),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-08")

        assert timeline.directive_for("2026-01-07").low_wins_progress == 1
        assert timeline.directive_for("2026-01-08").low_wins_progress == 0
        assert len(timeline.mode_switches) == 1

    def test_mixed_day_loss_wins(self):
        """Test any loss on a day drops to LOW even alongside wins."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-06", 300.0),
            make_trade("b", "2026-01-05", "2026-01-06", -1.0),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-07")

        assert timeline.directive_for("2026-01-07").mode == RiskMode.LOW
        assert timeline.directive_for("2026-01-07").equity == pytest.approx(25299.0)

    def test_mode_at_entry_fallback(self):
        """Test recorded entry mode is used when the entry day is unknown."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-05", -100.0),
            make_trade("b", None, "2026-01-06", 10.0, mode_at_entry=RiskMode.LOW),
            make_trade("c", None, "2026-01-07", 10.0, mode_at_entry=RiskMode.LOW),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-08")

        assert timeline.directive_for("2026-01-08").mode == RiskMode.HIGH


class TestAsOfDate:
    """Tests for as_of handling."""

    def test_trades_after_as_of_ignored(self):
        """Test future entries and exits have no effect."""
        trades = [
            make_trade("a", "2026-01-05", "2026-01-06", -100.0),
            make_trade("b", "2026-01-10", "2026-01-10", -100.0),
        ]
        timeline = apply_daily_directives(trades, 25000.0, STRATEGY, "2026-01-06")

        assert timeline.directives[-1].date == "2026-01-06"
        assert "b" not in timeline.assignments
        assert timeline.final_state.equity == pytest.approx(24900.0)

    def test_no_trades(self):
        """Test an empty history yields one HIGH directive."""
        timeline = apply_daily_directives([], 25000.0, STRATEGY, "2026-01-05")

        assert len(timeline.directives) == 1
        assert timeline.directives[0].mode == RiskMode.HIGH
        assert timeline.directives[0].allowed_risk_dollars == pytest.approx(750.0)

    def test_invalid_as_of_raises(self):
        """Test a malformed as_of date raises ValueError."""
        with pytest.raises(ValueError):
            apply_daily_directives([], 25000.0, STRATEGY, "yesterday")

    def test_default_as_of_uses_market_timezone(self, monkeypatch):
        """Test an omitted as_of is today's date in the configured market zone."""
        zones = []

        def fake_today(tz):
            zones.append(tz)
            return "2026-01-09"

        monkeypatch.setattr("tradethrottle.risk.throttle.today_market_key", fake_today)
        result = get_current_risk([], 25000.0, STRATEGY, market_tz="Europe/London")

        assert zones == ["Europe/London"]
        assert result.as_of_date == "2026-01-09"

    def test_losses_to_drop_warning(self, caplog):
        """Test a non-default losses_to_drop is reported as not applied."""
        strategy = StrategyConfig(losses_to_drop=3)

        with caplog.at_level(logging.WARNING):
            apply_daily_directives([], 25000.0, strategy, "2026-01-05")

        assert "losses_to_drop=3" in caplog.text


class TestGetCurrentRisk:
    """Tests for get_current_risk."""

    def test_high_mode_today(self):
        """Test today's directive and forecast after recovery."""
        risk = get_current_risk(restart_trace(), 25000.0, STRATEGY, "2026-01-09")

        assert risk.as_of_date == "2026-01-09"
        assert risk.mode == RiskMode.HIGH
        assert risk.allowed_risk_dollars == pytest.approx(739.5)
        assert risk.forecast.if_win.mode == RiskMode.HIGH
        assert risk.forecast.if_loss.mode == RiskMode.LOW
        assert risk.forecast.if_loss.risk_pct == 0.001
        assert risk.next_trading_day == "2026-01-12"
        assert risk.low_wins_needed == 2

    def test_one_win_from_recovery(self):
        """Test the if-win branch returns to HIGH when one win is missing."""
        risk = get_current_risk(restart_trace(), 25000.0, STRATEGY, "2026-01-08")

        assert risk.mode == RiskMode.LOW
        assert risk.directive.low_wins_progress == 1
        assert risk.forecast.if_win.mode == RiskMode.HIGH
        assert risk.end_of_day.mode == RiskMode.HIGH

    def test_does_not_mutate_inputs(self):
        """Test repeated calls give equal results."""
        trades = restart_trace()
        first = get_current_risk(trades, 25000.0, STRATEGY, "2026-01-09")
        second = get_current_risk(trades, 25000.0, STRATEGY, "2026-01-09")

        assert first == second
