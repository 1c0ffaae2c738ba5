# tradethrottle/risk/models.py
"""Data models for the Restart Throttle risk engine."""
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RiskMode(str, Enum):
    """Risk throttle mode."""

    HIGH = "HIGH"
    LOW = "LOW"


class TradeOutcome(str, Enum):
    """Classification of a trade by realized P&L."""

    WIN = "WIN"
    LOSS = "LOSS"
    BREAKEVEN = "BREAKEVEN"
    ACTIVE = "ACTIVE"


class StrategyConfig(BaseModel):
    """Tunable parameters of the Restart Throttle.

    Attributes:
        id: Strategy identifier.
        name: Display name.
        high_mode_risk_pct: Fraction of equity risked per trade in HIGH mode.
        low_mode_risk_pct: Fraction of equity risked per trade in LOW mode.
        wins_to_recover: Qualifying LOW-mode wins needed to return to HIGH.
        losses_to_drop: Losses needed to drop from HIGH to LOW. The state
            machine drops on a single loss regardless of this value.
    """

    model_config = ConfigDict(frozen=True)

    id: str = "restart-throttle"
    name: str = "Restart Throttle"
    high_mode_risk_pct: float = Field(default=0.03, gt=0, le=1)
    low_mode_risk_pct: float = Field(default=0.001, gt=0, le=1)
    wins_to_recover: int = Field(default=2, ge=1)
    losses_to_drop: int = Field(default=1, ge=1)

    def risk_pct_for(self, mode: RiskMode) -> float:
        """Risk percentage associated with a mode."""
        return self.high_mode_risk_pct if mode == RiskMode.HIGH else self.low_mode_risk_pct


@dataclass(frozen=True)
class Trade:
    """A reconstructed trade as consumed by the risk engine.

    Attributes:
        id: Stable trade identifier.
        symbol: Ticker symbol.
        entry_day_key: Market day the position was opened (YYYY-MM-DD).
        exit_day_key: Market day the position was closed, None while open.
        realized_pnl: Realized P&L in dollars (0 while open).
        mode_at_entry: Mode recorded when the trade was opened, if known.
    """

    id: str
    symbol: str
    entry_day_key: str | None
    exit_day_key: str | None = None
    realized_pnl: float = 0.0
    mode_at_entry: RiskMode | None = None

    @property
    def is_closed(self) -> bool:
        """Check if the trade has an exit day."""
        return self.exit_day_key is not None

    @property
    def outcome(self) -> TradeOutcome:
        """WIN, LOSS or BREAKEVEN for closed trades, ACTIVE otherwise."""
        if not self.is_closed:
            return TradeOutcome.ACTIVE
        if self.realized_pnl > 0:
            return TradeOutcome.WIN
        if self.realized_pnl < 0:
            return TradeOutcome.LOSS
        return TradeOutcome.BREAKEVEN


@dataclass(frozen=True)
class ThrottleState:
    """Carried state of the throttle between days."""

    mode: RiskMode
    low_wins_progress: int
    equity: float


@dataclass(frozen=True)
class DailyDirective:
    """Risk decision in effect for one calendar day.

    Attributes:
        date: Day key (YYYY-MM-DD).
        mode: Active mode at the start of the day.
        risk_pct: Risk fraction in effect for the day.
        equity: Equity available at day start.
        low_wins_progress: Qualifying LOW-mode wins collected so far.
    """

    date: str
    mode: RiskMode
    risk_pct: float
    equity: float
    low_wins_progress: int

    @property
    def allowed_risk_dollars(self) -> float:
        """Dollar risk allowed per trade for the day."""
        return self.equity * self.risk_pct


@dataclass(frozen=True)
class RiskAssignment:
    """Risk locked in for a trade at its entry day."""

    trade_id: str
    date: str
    mode: RiskMode
    risk_pct: float
    equity: float

    @property
    def risk_dollars(self) -> float:
        """Dollar risk allowed for the trade."""
        return self.equity * self.risk_pct


@dataclass(frozen=True)
class ModeSwitch:
    """A mode transition applied at the end of a day.

    The new mode takes effect on the following calendar day.
    """

    date: str
    from_mode: RiskMode
    to_mode: RiskMode
    reason: str


@dataclass
class DirectiveTimeline:
    """Day-by-day output of the throttle walk.

    Attributes:
        directives: One directive per calendar day, ascending, without gaps.
        assignments: Entry risk keyed by trade id.
        mode_switches: Transitions in the order they happened.
        final_state: State carried out of the last walked day.
    """

    directives: list[DailyDirective]
    assignments: dict[str, RiskAssignment]
    mode_switches: list[ModeSwitch]
    final_state: ThrottleState
    _by_date: dict[str, DailyDirective] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_date = {d.date: d for d in self.directives}

    def directive_for(self, day_key: str) -> DailyDirective | None:
        """Look up the directive for a day key."""
        return self._by_date.get(day_key)


@dataclass(frozen=True)
class ForecastBranch:
    """Resulting mode and risk for one hypothetical outcome."""

    mode: RiskMode
    risk_pct: float


@dataclass(frozen=True)
class RiskForecast:
    """What-if projection for the next closed trade."""

    if_win: ForecastBranch
    if_loss: ForecastBranch


@dataclass(frozen=True)
class CurrentRiskResult:
    """Today's directive plus a non-mutating forecast.

    Attributes:
        as_of_date: Day key the result was computed for.
        directive: Directive in effect today.
        forecast: Next-trade win/loss projection from today's directive.
        low_wins_needed: Configured wins_to_recover.
        next_trading_day: Next weekday after as_of_date.
        end_of_day: State after today's exits have been applied.
    """

    as_of_date: str
    directive: DailyDirective
    forecast: RiskForecast
    low_wins_needed: int
    next_trading_day: str
    end_of_day: ThrottleState

    @property
    def mode(self) -> RiskMode:
        return self.directive.mode

    @property
    def risk_pct(self) -> float:
        return self.directive.risk_pct

    @property
    def allowed_risk_dollars(self) -> float:
        return self.directive.allowed_risk_dollars
