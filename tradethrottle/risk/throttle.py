# tradethrottle/risk/throttle.py
"""Restart Throttle state machine: a day-by-day fold over closed trades."""
import logging
import math
from collections import defaultdict
from collections.abc import Iterable

from tradethrottle.dates.date_key import (
    MARKET_TZ,
    iter_day_keys,
    next_business_day,
    normalize_date_key,
    today_market_key,
)
from tradethrottle.risk.forecast import forecast_next
from tradethrottle.risk.models import (
    CurrentRiskResult,
    DailyDirective,
    DirectiveTimeline,
    ModeSwitch,
    RiskAssignment,
    RiskMode,
    StrategyConfig,
    ThrottleState,
    Trade,
)

logger = logging.getLogger(__name__)


def _resolve_as_of(as_of_date: str | None, market_tz: str = MARKET_TZ) -> str:
    if as_of_date is None:
        return today_market_key(market_tz)
    key = normalize_date_key(as_of_date)
    if key is None:
        raise ValueError(f"Invalid as_of_date: {as_of_date}")
    return key


def _index_trades(
    trades: Iterable[Trade], as_of: str
) -> tuple[dict[str, list[Trade]], dict[str, list[Trade]], str]:
    """Bucket trades by entry and exit day, ignoring anything after as_of.

    Returns:
        Tuple of (entries_by_day, exits_by_day, first_day).
    """
    entries: dict[str, list[Trade]] = defaultdict(list)
    exits: dict[str, list[Trade]] = defaultdict(list)
    first_day = as_of

    for trade in trades:
        entry_key = normalize_date_key(trade.entry_day_key)
        exit_key = normalize_date_key(trade.exit_day_key)

        if entry_key is not None and entry_key <= as_of:
            entries[entry_key].append(trade)
            first_day = min(first_day, entry_key)
        if exit_key is not None and exit_key <= as_of:
            exits[exit_key].append(trade)
            first_day = min(first_day, exit_key)

    for bucket in (entries, exits):
        for day_trades in bucket.values():
            day_trades.sort(key=lambda t: t.id)

    return entries, exits, first_day


def _entry_mode(trade: Trade, assignments: dict[str, RiskAssignment]) -> RiskMode | None:
    assignment = assignments.get(trade.id)
    if assignment is not None:
        return assignment.mode
    return trade.mode_at_entry


def apply_daily_directives(
    trades: Iterable[Trade],
    starting_equity: float,
    strategy: StrategyConfig,
    as_of_date: str | None = None,
    market_tz: str = MARKET_TZ,
) -> DirectiveTimeline:
    """Walk every calendar day and assign the throttle's risk.

    For each day, in order: record the directive carried in from the
    previous day, lock in entry risk for trades opened that day, then apply
    the day's exits. Any losing exit drops the mode to LOW and resets the
    recovery counter. Otherwise, in LOW mode, exits that were entered in LOW
    with P&L >= 0 count toward recovery; reaching wins_to_recover returns to
    HIGH. Equity compounds by the day's realized P&L.

    Args:
        trades: Trades with entry/exit day keys and realized P&L.
        starting_equity: Account equity before the first trade.
        strategy: Throttle parameters.
        as_of_date: Last day to walk (YYYY-MM-DD). Defaults to today in
            market_tz.
        market_tz: Zone that decides what "today" is when as_of_date is omitted.

    Returns:
        DirectiveTimeline with directives, entry assignments and mode switches.

    Raises:
        ValueError: If as_of_date is not a valid date.
    """
    as_of = _resolve_as_of(as_of_date, market_tz)
    entries_by_day, exits_by_day, first_day = _index_trades(trades, as_of)

    if strategy.losses_to_drop != 1:
        logger.warning(
            f"losses_to_drop={strategy.losses_to_drop} is not applied; "
            "a single loss drops the throttle to LOW"
        )

    mode = RiskMode.HIGH
    low_wins_progress = 0
    equity = float(starting_equity) if math.isfinite(starting_equity) else 0.0

    directives: list[DailyDirective] = []
    assignments: dict[str, RiskAssignment] = {}
    mode_switches: list[ModeSwitch] = []

    for day in iter_day_keys(first_day, as_of):
        risk_pct = strategy.risk_pct_for(mode)
        directives.append(
            DailyDirective(
                date=day,
                mode=mode,
                risk_pct=risk_pct,
                equity=equity,
                low_wins_progress=low_wins_progress,
            )
        )

        for trade in entries_by_day.get(day, []):
            if trade.id in assignments:
                continue
            assignments[trade.id] = RiskAssignment(
                trade_id=trade.id,
                date=day,
                mode=mode,
                risk_pct=risk_pct,
                equity=equity,
            )

        exits = exits_by_day.get(day)
        if not exits:
            continue

        if any(t.realized_pnl < 0 for t in exits):
            if mode == RiskMode.HIGH:
                mode_switches.append(
                    ModeSwitch(date=day, from_mode=RiskMode.HIGH, to_mode=RiskMode.LOW, reason="loss")
                )
            mode = RiskMode.LOW
            low_wins_progress = 0
        elif mode == RiskMode.LOW:
            qualifying = sum(
                1
                for t in exits
                if t.realized_pnl >= 0 and _entry_mode(t, assignments) == RiskMode.LOW
            )
            low_wins_progress += qualifying
            if low_wins_progress >= strategy.wins_to_recover:
                mode_switches.append(
                    ModeSwitch(
                        date=day,
                        from_mode=RiskMode.LOW,
                        to_mode=RiskMode.HIGH,
                        reason=f"{low_wins_progress} qualifying wins",
                    )
                )
                mode = RiskMode.HIGH
                low_wins_progress = 0

        equity += sum(t.realized_pnl for t in exits)

    logger.debug(
        f"Walked {len(directives)} days from {first_day} to {as_of}: "
        f"{len(assignments)} entries, {len(mode_switches)} mode switches"
    )

    return DirectiveTimeline(
        directives=directives,
        assignments=assignments,
        mode_switches=mode_switches,
        final_state=ThrottleState(mode=mode, low_wins_progress=low_wins_progress, equity=equity),
    )


def get_current_risk(
    trades: Iterable[Trade],
    starting_equity: float,
    strategy: StrategyConfig,
    as_of_date: str | None = None,
    market_tz: str = MARKET_TZ,
) -> CurrentRiskResult:
    """Directive for today plus a win/loss forecast.

    Args:
        trades: Trades with entry/exit day keys and realized P&L.
        starting_equity: Account equity before the first trade.
        strategy: Throttle parameters.
        as_of_date: Day treated as today. Defaults to the current date in market_tz.
        market_tz: Market time zone.

    Returns:
        CurrentRiskResult for as_of_date.
    """
    timeline = apply_daily_directives(
        trades, starting_equity, strategy, as_of_date, market_tz
    )
    today = timeline.directives[-1]

    return CurrentRiskResult(
        as_of_date=today.date,
        directive=today,
        forecast=forecast_next(today, strategy),
        low_wins_needed=strategy.wins_to_recover,
        next_trading_day=next_business_day(today.date),
        end_of_day=timeline.final_state,
    )
