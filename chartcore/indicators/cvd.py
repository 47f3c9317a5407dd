"""
CVD Indicator - Cumulative Volume Delta.

Classifies each 1-minute bar's volume as buying (+) or selling (-),
accumulates it inside each target-timeframe candle and expresses the
running total as OHLC candles. The running total resets to zero whenever
a candle falls in a new anchor period (day, hour, 4h session, week).

Delta rules per 1-minute bar:
- close > open: +volume
- close < open: -volume
- doji: compare close with the previous bar's close, and if equal (or
  there is no previous bar) inherit the sign of the previous delta
"""

import bisect
import logging
from collections.abc import Sequence

from chartcore.core.models import Bar, CVDCandle, Point
from chartcore.core.sessions import AnchorPeriod, anchor_period_start

logger = logging.getLogger(__name__)


def bar_delta(bar: Bar, previous_bar: Bar | None, previous_delta: float | None) -> float:
    """
    Calculate signed volume for a single bar.

    Args:
        bar: Current bar
        previous_bar: Previous bar (None for the first bar of a run)
        previous_delta: Previous bar's delta, used for doji inheritance

    Returns:
        +volume, -volume, or 0 when a doji has no context to inherit from
    """
    if bar.close > bar.open:
        return bar.volume
    if bar.close < bar.open:
        return -bar.volume

    # Doji: compare against previous close
    if previous_bar is not None:
        if bar.close > previous_bar.close:
            return bar.volume
        if bar.close < previous_bar.close:
            return -bar.volume

    if previous_delta:
        return bar.volume if previous_delta > 0 else -bar.volume

    return 0.0


def minute_deltas(bars: Sequence[Bar]) -> list[Point]:
    """
    Calculate per-bar deltas for a run of bars.

    Previous-bar context starts empty at the beginning of the run.

    Returns:
        One Point per bar holding its delta
    """
    deltas: list[Point] = []
    previous_bar: Bar | None = None
    previous_delta = 0.0

    for bar in bars:
        delta = bar_delta(bar, previous_bar, previous_delta)
        deltas.append(Point(time=bar.time, value=delta))
        previous_bar = bar
        previous_delta = delta

    return deltas


def cvd_for_candle(
    minute_bars: Sequence[Bar],
    open_cvd: float,
) -> tuple[float, float, float, float]:
    """
    Calculate CVD OHLC for one target candle.

    Args:
        minute_bars: 1-minute bars inside the candle's window
        open_cvd: Previous candle's close CVD (0 after an anchor reset)

    Returns:
        (open, high, low, close) cumulative delta; a flat candle at
        open_cvd when the window holds no bars
    """
    high_cvd = open_cvd
    low_cvd = open_cvd
    running = open_cvd

    for delta in minute_deltas(minute_bars):
        running += delta.value
        high_cvd = max(high_cvd, running)
        low_cvd = min(low_cvd, running)

    return open_cvd, high_cvd, low_cvd, running


def calculate_cvd(
    candles: Sequence[Bar],
    minute_bars: Sequence[Bar],
    anchor_period: AnchorPeriod | str = AnchorPeriod.DAY,
    timeframe_minutes: int = 5,
) -> list[CVDCandle]:
    """
    Calculate CVD candles for a target-timeframe series.

    For each candle the 1-minute bars with time in
    [candle.time, candle.time + timeframe) are folded into a running total
    that carries over from the previous candle within the same anchor period.

    Args:
        candles: Target-timeframe price candles (oldest first)
        minute_bars: 1-minute bars covering the same span (oldest first)
        anchor_period: Reset period - 1D, 1H, 4H or 1W
        timeframe_minutes: Target candle resolution in minutes

    Returns:
        One CVDCandle per input candle
    """
    anchor = AnchorPeriod.parse(anchor_period)
    timeframe_seconds = timeframe_minutes * 60
    minute_times = [bar.time for bar in minute_bars]

    result: list[CVDCandle] = []
    cumulative = 0.0
    current_anchor: int | None = None
    resets = 0

    for candle in candles:
        anchor_start = anchor_period_start(candle.time, anchor)
        if anchor_start != current_anchor:
            if current_anchor is not None:
                logger.debug(f"CVD reset at {candle.time} (anchor {anchor.value})")
                resets += 1
            current_anchor = anchor_start
            cumulative = 0.0

        lo = bisect.bisect_left(minute_times, candle.time)
        hi = bisect.bisect_left(minute_times, candle.time + timeframe_seconds)

        open_cvd, high_cvd, low_cvd, close_cvd = cvd_for_candle(minute_bars[lo:hi], cumulative)
        cumulative = close_cvd

        result.append(
            CVDCandle(
                time=candle.time,
                open=open_cvd,
                high=high_cvd,
                low=low_cvd,
                close=close_cvd,
                underlying=candle,
            )
        )

    logger.info(f"Calculated CVD for {len(result)} candles ({resets} anchor resets)")
    return result
