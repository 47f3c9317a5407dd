#!/usr/bin/env python3
"""
CLI for running indicators over stored bar files.

Usage:
    python -m chartcore.cli rsi --data data/NIFTY_5m.csv
    python -m chartcore.cli macd --data data/NIFTY_5m.parquet --tail 20
    python -m chartcore.cli cvd --data data/NIFTY_1m.csv --timeframe 5 --anchor 1D
    python -m chartcore.cli frvp --data data/NIFTY_1m.csv --rows-layout Tick --row-size 5

Defaults come from CHARTCORE_* environment variables (or a .env file).
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from chartcore.core.candle_aggregator import aggregate_bars
from chartcore.core.config import IndicatorSettings
from chartcore.core.errors import IndicatorError
from chartcore.core.models import Bar, Point
from chartcore.core.sessions import IST
from chartcore.historical.storage import BarStorage
from chartcore.indicators.cmf import cmf
from chartcore.indicators.cvd import calculate_cvd
from chartcore.indicators.macd import macd
from chartcore.indicators.rsi import MAType, RSIConfig, advanced_rsi
from chartcore.indicators.volume_profile import FRVPConfig, RowsLayout, calculate_frvp

console = Console()


def format_time(timestamp: int) -> str:
    """Unix seconds as an IST date-time string."""
    return datetime.fromtimestamp(timestamp, IST).strftime("%Y-%m-%d %H:%M")


def signed(value: float, digits: int = 2) -> Text:
    """Green for positive, red for negative."""
    style = "green" if value > 0 else "red" if value < 0 else "dim"
    return Text(f"{value:,.{digits}f}", style=style)


def infer_timeframe_minutes(bars: Sequence[Bar]) -> int | None:
    """Smallest spacing between consecutive bars, in minutes."""
    gaps = [b.time - a.time for a, b in zip(bars, bars[1:]) if b.time > a.time]
    if not gaps:
        return None
    return max(1, min(gaps) // 60)


def point_table(title: str, columns: dict[str, list[Point]], tail: int) -> Table:
    """Build a table of several time-aligned series (joined on time)."""
    table = Table(title=title)
    table.add_column("Time (IST)", style="cyan")
    for name in columns:
        table.add_column(name, justify="right")

    lookups = {name: {p.time: p.value for p in series} for name, series in columns.items()}
    first = next(iter(columns.values()))
    for point in first[-tail:]:
        cells = []
        for lookup in lookups.values():
            value = lookup.get(point.time)
            cells.append("-" if value is None else f"{value:,.2f}")
        table.add_row(format_time(point.time), *cells)
    return table


def run_rsi(args: argparse.Namespace, settings: IndicatorSettings, storage: BarStorage) -> None:
    bars = storage.load_bars(args.data)
    config = RSIConfig(
        period=args.period or settings.rsi_period,
        ma_type=args.ma_type,
        ma_length=args.ma_length,
        calculate_divergence=args.divergence,
    )
    result = advanced_rsi(bars, config)

    columns = {"RSI": result.rsi}
    if result.ma:
        columns[config.ma_type.value] = result.ma
    if result.bb_upper:
        columns["BB Upper"] = result.bb_upper
        columns["BB Lower"] = result.bb_lower
    console.print(point_table(f"RSI ({config.period})", columns, args.tail))

    for divergence in result.bull_divergences + result.bear_divergences:
        style = "green" if divergence.kind == "bullish" else "red"
        console.print(
            Text(
                f"{divergence.label} divergence at {format_time(divergence.time)} "
                f"(RSI {divergence.value:.2f})",
                style=style,
            )
        )


def run_macd(args: argparse.Namespace, settings: IndicatorSettings, storage: BarStorage) -> None:
    bars = storage.load_bars(args.data)
    result = macd(
        bars,
        fast_length=args.fast or settings.macd_fast,
        slow_length=args.slow or settings.macd_slow,
        signal_length=args.signal or settings.macd_signal,
    )

    table = Table(title="MACD")
    table.add_column("Time (IST)", style="cyan")
    table.add_column("MACD", justify="right")
    table.add_column("Signal", justify="right")
    table.add_column("Histogram", justify="right")
    for point in list(result.points())[-args.tail :]:
        table.add_row(
            format_time(point.time),
            f"{point.macd_line:,.4f}",
            f"{point.signal_line:,.4f}",
            signed(point.histogram, 4),
        )
    console.print(table)


def run_cmf(args: argparse.Namespace, settings: IndicatorSettings, storage: BarStorage) -> None:
    bars = storage.load_bars(args.data)
    length = args.length or settings.cmf_length
    console.print(point_table(f"CMF ({length})", {"CMF": cmf(bars, length)}, args.tail))


def run_cvd(args: argparse.Namespace, settings: IndicatorSettings, storage: BarStorage) -> None:
    minute_bars = storage.load_bars(args.minute_data or args.data)
    timeframe = args.timeframe or settings.timeframe_minutes
    anchor = args.anchor or settings.cvd_anchor_period

    if args.minute_data:
        candles = storage.load_bars(args.data)
    else:
        candles = minute_bars

    if infer_timeframe_minutes(candles) != timeframe:
        candles = aggregate_bars(candles, timeframe)

    result = calculate_cvd(candles, minute_bars, anchor_period=anchor, timeframe_minutes=timeframe)

    table = Table(title=f"CVD ({anchor}, {timeframe}m)")
    table.add_column("Time (IST)", style="cyan")
    for name in ("Open", "High", "Low", "Close"):
        table.add_column(name, justify="right")
    table.add_column("Price", justify="right")
    for candle in result[-args.tail :]:
        table.add_row(
            format_time(candle.time),
            f"{candle.open:,.0f}",
            f"{candle.high:,.0f}",
            f"{candle.low:,.0f}",
            signed(candle.close, 0),
            f"{candle.underlying.close:,.2f}",
        )
    console.print(table)


def run_frvp(args: argparse.Namespace, settings: IndicatorSettings, storage: BarStorage) -> None:
    bars = storage.load_bars(args.minute_data or args.data)
    config = FRVPConfig.from_dict(
        {
            "rowsLayout": args.rows_layout or settings.frvp_rows_layout,
            "rowSize": args.row_size or settings.frvp_row_size,
            "valueAreaVolume": (
                args.value_area if args.value_area is not None else settings.frvp_value_area_volume
            ),
        }
    )
    profile = calculate_frvp(
        bars,
        start_time=args.start,
        end_time=args.end,
        config=config,
        market_hours_only=args.market_hours,
    )

    table = Table(title=f"FRVP {profile.profile_low:,.2f} - {profile.profile_high:,.2f}")
    table.add_column("Row", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Up", justify="right")
    table.add_column("Down", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("")

    for row in reversed(profile.rows):
        marks = []
        if row.index == profile.poc.index:
            marks.append("POC")
        if row.index == profile.vah.index:
            marks.append("VAH")
        if row.index == profile.val.index:
            marks.append("VAL")
        style = "bold" if row.index in profile.value_area_rows else "dim"
        table.add_row(
            str(row.index),
            Text(f"{row.price_level:,.2f}", style=style),
            f"{row.up_volume:,.0f}",
            f"{row.down_volume:,.0f}",
            f"{row.total_volume:,.0f}",
            signed(row.delta, 0),
            Text(" ".join(marks), style="yellow"),
        )
    console.print(table)
    console.print(
        f"POC {profile.poc.price_level:,.2f} | VAH {profile.vah.price_level:,.2f} | "
        f"VAL {profile.val.price_level:,.2f} | Volume {profile.total_volume:,.0f}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute chart indicators from stored OHLCV bars",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # RSI with SMA smoothing and divergences
    %(prog)s rsi --data bars_5m.csv --ma-type SMA --divergence

    # CVD candles from a 1-minute file, aggregated to 15 minutes, weekly anchor
    %(prog)s cvd --data bars_1m.parquet --timeframe 15 --anchor 1W

    # Volume profile with 0.5 price units per row, session hours only
    %(prog)s frvp --data bars_1m.csv --rows-layout Tick --row-size 0.5 --market-hours
        """,
    )
    parser.add_argument("--env-file", type=Path, help="Path to a .env file with CHARTCORE_* settings")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data", "-d", type=Path, required=True, help="Bar file (.csv or .parquet)")
    common.add_argument("--tail", "-n", type=int, default=10, help="Rows to print (default: 10)")

    sub = parser.add_subparsers(dest="command", required=True)

    rsi_parser = sub.add_parser("rsi", parents=[common], help="Relative Strength Index")
    rsi_parser.add_argument("--period", type=int, help="RSI period (default: settings)")
    rsi_parser.add_argument(
        "--ma-type",
        default="None",
        choices=[m.value for m in MAType],
        help="Smoothing applied to the RSI line",
    )
    rsi_parser.add_argument("--ma-length", type=int, default=14, help="Smoothing length")
    rsi_parser.add_argument("--divergence", action="store_true", help="Detect divergences")
    rsi_parser.set_defaults(handler=run_rsi)

    macd_parser = sub.add_parser("macd", parents=[common], help="MACD")
    macd_parser.add_argument("--fast", type=int, help="Fast EMA length")
    macd_parser.add_argument("--slow", type=int, help="Slow EMA length")
    macd_parser.add_argument("--signal", type=int, help="Signal EMA length")
    macd_parser.set_defaults(handler=run_macd)

    cmf_parser = sub.add_parser("cmf", parents=[common], help="Chaikin Money Flow")
    cmf_parser.add_argument("--length", type=int, help="Lookback length")
    cmf_parser.set_defaults(handler=run_cmf)

    cvd_parser = sub.add_parser("cvd", parents=[common], help="Cumulative Volume Delta candles")
    cvd_parser.add_argument("--minute-data", type=Path, help="1-minute bar file (default: --data)")
    cvd_parser.add_argument("--timeframe", type=int, help="Target candle minutes")
    cvd_parser.add_argument("--anchor", choices=["1D", "1H", "4H", "1W"], help="Reset period")
    cvd_parser.set_defaults(handler=run_cvd)

    frvp_parser = sub.add_parser("frvp", parents=[common], help="Fixed Range Volume Profile")
    frvp_parser.add_argument("--minute-data", type=Path, help="1-minute bar file (default: --data)")
    frvp_parser.add_argument(
        "--rows-layout", choices=[layout.value for layout in RowsLayout], help="Row sizing mode"
    )
    frvp_parser.add_argument("--row-size", type=float, help="Rows, price units or percent per row")
    frvp_parser.add_argument("--value-area", type=float, help="Value area volume percent")
    frvp_parser.add_argument("--start", type=int, help="Window start (Unix seconds)")
    frvp_parser.add_argument("--end", type=int, help="Window end (Unix seconds)")
    frvp_parser.add_argument(
        "--market-hours", action="store_true", help="Only use 09:15-15:30 IST bars"
    )
    frvp_parser.set_defaults(handler=run_frvp)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = IndicatorSettings.from_env(args.env_file)
    except IndicatorError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        args.handler(args, settings, BarStorage())
    except (IndicatorError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
