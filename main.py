# main.py
"""Command-line entry point: import a broker CSV and report today's risk."""
import argparse
import logging
import sys
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from tradethrottle.config.settings import Settings
from tradethrottle.dates.date_key import normalize_date_key
from tradethrottle.ingest.csv_importer import CsvImporter, CsvImportError
from tradethrottle.ingest.models import ImportResult
from tradethrottle.journal import MetricsCalculator, calculate_daily_equity
from tradethrottle.risk import RiskMode, Trade, explain_mode, get_current_risk

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


def load_and_validate_config(config_path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load and validate configuration.

    Args:
        config_path: Path to the YAML settings file.

    Returns:
        Settings object loaded from YAML.

    Raises:
        SystemExit: If the config file is missing or fails validation.
    """
    load_dotenv()

    if not config_path.exists():
        logger.error(f"{config_path} not found")
        sys.exit(1)

    try:
        settings = Settings.from_yaml(config_path)
        logger.info(f"✓ Settings loaded from {config_path}")
    except Exception as e:
        logger.error(f"Failed to parse {config_path}: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(settings.system.log_level.upper())
    return settings


def load_trades(path: Path) -> list[Trade]:
    """Read reconstructed trades from a CSV or JSON file.

    Expected columns: id, symbol, entry_day_key, exit_day_key, realized_pnl
    and optionally mode_at_entry.
    """
    if path.suffix.lower() == ".json":
        df = pd.read_json(path, dtype={"id": str, "entry_day_key": str, "exit_day_key": str})
    else:
        df = pd.read_csv(path, dtype={"id": str, "entry_day_key": str, "exit_day_key": str})

    df = df.astype(object).where(pd.notna(df), None)

    trades = []
    for record in df.to_dict(orient="records"):
        mode = record.get("mode_at_entry")
        trades.append(
            Trade(
                id=str(record["id"]),
                symbol=str(record.get("symbol") or ""),
                entry_day_key=normalize_date_key(record.get("entry_day_key")),
                exit_day_key=normalize_date_key(record.get("exit_day_key")),
                realized_pnl=float(record.get("realized_pnl") or 0.0),
                mode_at_entry=RiskMode(str(mode).upper()) if mode else None,
            )
        )

    logger.info(f"Loaded {len(trades)} trades from {path}")
    return trades


def report_import(result: ImportResult) -> None:
    """Log the outcome of a CSV import."""
    stats = result.stats
    logger.info("=" * 60)
    logger.info(
        f"Format: {result.detected_format.value} ({result.format_confidence.value} confidence)"
    )
    logger.info(f"Rows: {stats.total_rows}  Fills: {stats.valid_fills}  Skipped: {stats.skipped_rows}")
    if stats.date_range:
        logger.info(f"Dates: {stats.date_range.start} .. {stats.date_range.end}")
    if stats.symbols:
        logger.info(f"Symbols: {', '.join(stats.symbols)}")

    for error in result.errors:
        logger.error(f"{error.column}: {error.message}")
    for warning in result.warnings:
        log = logger.warning if warning.level == "warning" else logger.info
        log(f"[{warning.code}] {warning.message}")
    for skipped in result.skipped_rows:
        logger.warning(f"Row {skipped.row_index}: {'; '.join(skipped.reasons)}")
    logger.info("=" * 60)


def report_risk(trades: list[Trade], settings: Settings, as_of: str | None) -> None:
    """Log today's directive, the forecast and journal metrics."""
    starting_date = settings.account.starting_date
    if starting_date:
        trades = [t for t in trades if (t.entry_day_key or "") >= starting_date]

    strategy = settings.strategy
    equity = settings.account.starting_equity
    risk = get_current_risk(
        trades,
        equity,
        strategy,
        as_of_date=as_of,
        market_tz=settings.importer.market_timezone,
    )
    explanation = explain_mode(risk, strategy)

    logger.info("=" * 60)
    logger.info(explanation.title)
    logger.info(explanation.subtitle)
    for bullet in explanation.bullets:
        logger.info(f"  - {bullet}")
    logger.info(explanation.footer)

    daily = calculate_daily_equity(trades, equity)
    metrics = MetricsCalculator().calculate(trades, daily)
    logger.info(
        f"Trades: {metrics.total_trades}  Win rate: {metrics.win_rate:.1%}  "
        f"P&L: {metrics.total_pnl:,.2f}  Max DD: {metrics.max_drawdown_pct:.2%}"
    )
    logger.info("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import broker fills and size today's risk")
    parser.add_argument("--csv", type=Path, default=None, help="Broker order export to import")
    parser.add_argument("--trades", type=Path, default=None, help="Reconstructed trades (CSV or JSON)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Settings YAML")
    parser.add_argument("--as-of", type=str, default=None, help="Evaluate risk as of YYYY-MM-DD")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_and_validate_config(args.config)
    logger.info(f"Starting {settings.system.name} v{settings.system.version}")

    if args.csv is None and args.trades is None:
        logger.error("Nothing to do: pass --csv and/or --trades")
        return 1

    exit_code = 0
    if args.csv is not None:
        try:
            text = args.csv.read_text(encoding="utf-8")
            result = CsvImporter(settings.importer).import_csv(text)
        except (OSError, CsvImportError) as e:
            logger.error(f"Failed to import {args.csv}: {e}")
            return 1
        report_import(result)
        if not result.success:
            exit_code = 1

    if args.trades is not None:
        try:
            trades = load_trades(args.trades)
            report_risk(trades, settings, args.as_of)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to evaluate risk from {args.trades}: {e}")
            return 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
