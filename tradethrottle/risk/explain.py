# tradethrottle/risk/explain.py
"""Plain-language explanation of the current throttle mode."""
from dataclasses import dataclass

from tradethrottle.risk.models import CurrentRiskResult, RiskMode, StrategyConfig


@dataclass(frozen=True)
class ModeExplanation:
    """Text blocks describing the active mode."""

    title: str
    subtitle: str
    bullets: list[str]
    footer: str


FOOTER = "This is a daily throttle: a mode switch takes effect on the next calendar day."


def _fmt_money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _fmt_pct(value: float) -> str:
    return f"{value * 100:.2f}%"


def explain_mode(risk: CurrentRiskResult, strategy: StrategyConfig) -> ModeExplanation:
    """Build the explanation shown next to today's risk.

    Args:
        risk: Current risk result for today.
        strategy: Strategy parameters the result was computed with.

    Returns:
        ModeExplanation with title, subtitle, bullets and footer.
    """
    directive = risk.directive
    allowed = _fmt_money(directive.allowed_risk_dollars)
    equity = _fmt_money(directive.equity)

    if directive.mode == RiskMode.HIGH:
        return ModeExplanation(
            title="HIGH mode",
            subtitle="Use your full risk allocation.",
            bullets=[
                f"Risk today: {_fmt_pct(strategy.high_mode_risk_pct)} of equity ({allowed}).",
                "One losing trade drops you to LOW.",
                "Wins in HIGH do not change the mode.",
                f"Equity used: {equity} (starting equity + realized P&L through yesterday).",
            ],
            footer=FOOTER,
        )

    remaining = max(0, strategy.wins_to_recover - directive.low_wins_progress)
    return ModeExplanation(
        title="LOW mode",
        subtitle="Rebuild confidence with tiny risk.",
        bullets=[
            f"Risk today: {_fmt_pct(strategy.low_mode_risk_pct)} of equity ({allowed}).",
            f"Progress: {directive.low_wins_progress}/{strategy.wins_to_recover} "
            "winning trades needed to return to HIGH.",
            "A losing trade resets the win progress back to 0.",
            "Only trades opened in LOW count; breakeven exits count as wins.",
            f"Wins remaining to return to HIGH: {remaining}.",
            f"Equity used: {equity} (starting equity + realized P&L through yesterday).",
        ],
        footer=FOOTER,
    )
