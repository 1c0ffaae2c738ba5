# tradethrottle/risk/forecast.py
"""What-if projection of the next throttle transition."""
from tradethrottle.risk.models import (
    DailyDirective,
    ForecastBranch,
    RiskForecast,
    RiskMode,
    StrategyConfig,
    ThrottleState,
)


def forecast_next(
    current: DailyDirective | ThrottleState, strategy: StrategyConfig
) -> RiskForecast:
    """Project the mode after one more closed trade, without mutating state.

    A win never changes HIGH mode; in LOW mode it returns to HIGH only when
    the win completes the recovery count. A loss always lands in LOW.

    Args:
        current: Today's directive or a carried throttle state.
        strategy: Strategy parameters supplying the risk percentages.

    Returns:
        RiskForecast with the if-win and if-loss branches.
    """
    if current.mode == RiskMode.HIGH:
        win_mode = RiskMode.HIGH
    elif current.low_wins_progress + 1 >= strategy.wins_to_recover:
        win_mode = RiskMode.HIGH
    else:
        win_mode = RiskMode.LOW

    loss_mode = RiskMode.LOW

    return RiskForecast(
        if_win=ForecastBranch(mode=win_mode, risk_pct=strategy.risk_pct_for(win_mode)),
        if_loss=ForecastBranch(mode=loss_mode, risk_pct=strategy.risk_pct_for(loss_mode)),
    )
