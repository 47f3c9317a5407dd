"""
Moving Average Indicators - SMA, EMA, RMA, WMA, VWMA and standard deviation.

Pure functions over time series. Inputs are sequences of Points or Bars
(for Bars the value is read from `source`); outputs are lists of Points
aligned to the input times. A series shorter than the period yields an
empty list rather than an error.
"""

import math
from collections.abc import Mapping, Sequence

from chartcore.core.models import Bar, Point, PriceSource

SeriesInput = Sequence[Point] | Sequence[Bar]


def _is_missing(value: float | None) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _observations(
    data: SeriesInput,
    source: PriceSource | str,
) -> list[tuple[int, float | None]]:
    """Extract (time, value) pairs from Points or Bars."""
    observations: list[tuple[int, float | None]] = []
    for item in data:
        if isinstance(item, Point):
            observations.append((item.time, item.value))
        else:
            observations.append((item.time, item.value_of(source)))
    return observations


def _windows(
    observations: list[tuple[int, float | None]],
    period: int,
):
    """Yield (time, window_values) for each full window without missing values."""
    for i in range(period - 1, len(observations)):
        window = [value for _, value in observations[i - period + 1 : i + 1]]
        if any(_is_missing(v) for v in window):
            continue
        yield observations[i][0], window


def sma(data: SeriesInput, period: int, source: PriceSource | str = "close") -> list[Point]:
    """
    Calculate Simple Moving Average series.

    The first point sits at input index period - 1. Any window containing a
    missing value is skipped (no point emitted), not treated as zero.

    Args:
        data: Points or Bars (oldest first)
        period: Number of observations to average
        source: Bar field to read when data holds Bars

    Returns:
        List of SMA points
    """
    if period <= 0 or len(data) < period:
        return []

    return [
        Point(time=t, value=sum(window) / period)
        for t, window in _windows(_observations(data, source), period)
    ]


def _recursive_average(
    data: SeriesInput,
    period: int,
    alpha: float,
    source: PriceSource | str,
) -> list[Point]:
    """Exponential recurrence shared by EMA and RMA, seeded with the SMA of the first period values."""
    valid = [(t, v) for t, v in _observations(data, source) if not _is_missing(v)]
    if period <= 0 or len(valid) < period:
        return []

    current = sum(v for _, v in valid[:period]) / period
    result = [Point(time=valid[period - 1][0], value=current)]

    for t, value in valid[period:]:
        current = value * alpha + current * (1 - alpha)
        result.append(Point(time=t, value=current))

    return result


def ema(data: SeriesInput, period: int, source: PriceSource | str = "close") -> list[Point]:
    """
    Calculate Exponential Moving Average series.

    Uses multiplier = 2 / (period + 1). The first EMA value is seeded with
    the SMA of the first `period` observations. Missing values are dropped
    before smoothing.

    Args:
        data: Points or Bars (oldest first)
        period: Number of periods for EMA calculation
        source: Bar field to read when data holds Bars

    Returns:
        List of EMA points, the first at the period-th valid observation
    """
    if period <= 0:
        return []
    return _recursive_average(data, period, 2 / (period + 1), source)


def rma(data: SeriesInput, period: int, source: PriceSource | str = "close") -> list[Point]:
    """
    Calculate Wilder's moving average (RMA / SMMA) series.

    Same seeding as EMA with alpha = 1 / period. Used by RSI.
    """
    if period <= 0:
        return []
    return _recursive_average(data, period, 1 / period, source)


def wma(data: SeriesInput, period: int, source: PriceSource | str = "close") -> list[Point]:
    """
    Calculate linearly Weighted Moving Average series.

    The newest observation in a window has weight `period`, the oldest 1.
    """
    if period <= 0 or len(data) < period:
        return []

    weight_sum = period * (period + 1) / 2
    result: list[Point] = []
    for t, window in _windows(_observations(data, source), period):
        weighted = sum(value * (i + 1) for i, value in enumerate(window))
        result.append(Point(time=t, value=weighted / weight_sum))
    return result


def vwma(
    data: SeriesInput,
    period: int,
    source: PriceSource | str = "close",
    volume_by_time: Mapping[int, float] | None = None,
) -> list[Point]:
    """
    Calculate Volume Weighted Moving Average series.

    VWMA = sum(price * volume) / sum(volume) over the trailing window,
    0 when the window carries no volume.

    Args:
        data: Points or Bars (oldest first)
        period: Window length
        source: Bar field to read when data holds Bars
        volume_by_time: Volume lookup keyed by time, used instead of the
            items' own volume (e.g. to weight an RSI series by bar volume)

    Returns:
        List of VWMA points
    """
    if period <= 0 or len(data) < period:
        return []

    observations = _observations(data, source)
    if volume_by_time is not None:
        volumes = [volume_by_time.get(t, 0.0) for t, _ in observations]
    else:
        volumes = [getattr(item, "volume", 0.0) for item in data]

    result: list[Point] = []
    for i in range(period - 1, len(observations)):
        pv_sum = 0.0
        v_sum = 0.0
        missing = False
        for j in range(i - period + 1, i + 1):
            price = observations[j][1]
            if _is_missing(price):
                missing = True
                break
            pv_sum += price * volumes[j]
            v_sum += volumes[j]
        if missing:
            continue
        result.append(Point(time=observations[i][0], value=0.0 if v_sum == 0 else pv_sum / v_sum))

    return result


def stdev(data: SeriesInput, period: int, source: PriceSource | str = "close") -> list[Point]:
    """
    Calculate population standard deviation series (divides by period).
    """
    if period <= 0 or len(data) < period:
        return []

    result: list[Point] = []
    for t, window in _windows(_observations(data, source), period):
        mean = sum(window) / period
        variance = sum((value - mean) ** 2 for value in window) / period
        result.append(Point(time=t, value=math.sqrt(variance)))
    return result


def latest_sma(prices: list[float], period: int) -> float | None:
    """
    Calculate the current Simple Moving Average of a plain price list.

    Args:
        prices: List of prices (most recent last)
        period: Number of periods to average

    Returns:
        SMA value or None if insufficient data
    """
    if len(prices) < period or period <= 0:
        return None

    return sum(prices[-period:]) / period


def latest_ema(prices: list[float], period: int) -> float | None:
    """
    Calculate the current Exponential Moving Average of a plain price list.

    Returns:
        Current EMA value or None if insufficient data
    """
    if len(prices) < period or period <= 0:
        return None

    series = ema([Point(time=i, value=p) for i, p in enumerate(prices)], period)
    return series[-1].value if series else None
