"""
RSI Indicator - Relative Strength Index calculation.

Measures the speed and magnitude of recent price changes
to evaluate overbought or oversold conditions.

Includes the advanced RSI study: optional smoothing of the RSI line,
Bollinger Bands around it, and pivot-based price/RSI divergences.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from chartcore.core.errors import InvalidConfigurationError
from chartcore.core.models import Bar, Point, PriceSource

from .moving_averages import ema, rma, sma, stdev, vwma, wma

logger = logging.getLogger(__name__)


class MAType(Enum):
    """Smoothing applied to the RSI line."""

    NONE = "None"
    SMA = "SMA"
    EMA = "EMA"
    SMMA = "SMMA"  # Wilder / RMA
    WMA = "WMA"
    VWMA = "VWMA"
    BB = "BB"  # SMA with Bollinger Bands

    @classmethod
    def parse(cls, value: "MAType | str") -> "MAType":
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.upper() == str(value).upper():
                return member
        raise InvalidConfigurationError(f"Unknown RSI smoothing type: {value!r}")


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    """RSI from average gain/loss, clamped to 0-100."""
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else 50.0

    rs = avg_gain / avg_loss
    value = 100 - (100 / (1 + rs))
    return max(0.0, min(100.0, value))


def rsi(
    bars: Sequence[Bar],
    period: int = 14,
    source: PriceSource | str = "close",
) -> list[Point]:
    """
    Calculate RSI series using Wilder's smoothing.

    RSI = 100 - (100 / (1 + RS)), RS = RMA(gains) / RMA(losses).
    The change between bar i-1 and bar i is stamped with bar i's time,
    so the first RSI value is reported at bars[period].

    Args:
        bars: Bars (oldest first), needs period + 1 bars minimum
        period: Lookback period (default 14)
        source: Bar field to measure changes on (default close)

    Returns:
        List of RSI points, one for each bar from index `period` on
    """
    if period <= 0 or len(bars) <= period:
        return []

    gains: list[Point] = []
    losses: list[Point] = []
    for i in range(1, len(bars)):
        change = bars[i].value_of(source) - bars[i - 1].value_of(source)
        gains.append(Point(time=bars[i].time, value=max(change, 0.0)))
        losses.append(Point(time=bars[i].time, value=max(-change, 0.0)))

    avg_gains = rma(gains, period)
    avg_losses = rma(losses, period)

    return [
        Point(time=g.time, value=_rsi_value(g.value, l.value))
        for g, l in zip(avg_gains, avg_losses, strict=True)
    ]


def rsi_value(
    bars: Sequence[Bar],
    period: int = 14,
    source: PriceSource | str = "close",
) -> float | None:
    """
    Calculate the current RSI value.

    Returns:
        Latest RSI value (0-100) or None if insufficient data
    """
    series = rsi(bars, period, source)
    return series[-1].value if series else None


# =============================================================================
# Pivots and divergence
# =============================================================================


@dataclass(frozen=True)
class Pivot:
    """A local extreme of a series."""

    index: int
    time: int
    value: float


def _find_pivots(
    series: Sequence[Point],
    left: int,
    right: int,
    kind: Literal["low", "high"],
) -> list[Pivot]:
    pivots: list[Pivot] = []
    for i in range(left, len(series) - right):
        value = series[i].value
        neighbours = [series[j].value for j in range(i - left, i + right + 1) if j != i]
        if kind == "low":
            is_pivot = all(value < v for v in neighbours)
        else:
            is_pivot = all(value > v for v in neighbours)
        if is_pivot:
            pivots.append(Pivot(index=i, time=series[i].time, value=value))
    return pivots


def find_pivot_lows(series: Sequence[Point], left: int = 5, right: int = 5) -> list[Pivot]:
    """
    Find pivot lows in a series.

    A point is a pivot low iff it is strictly lower than every other point
    within `left` points before and `right` points after it. Ties disqualify.
    """
    return _find_pivots(series, left, right, "low")


def find_pivot_highs(series: Sequence[Point], left: int = 5, right: int = 5) -> list[Pivot]:
    """Find pivot highs in a series (strictly higher than all neighbours)."""
    return _find_pivots(series, left, right, "high")


@dataclass(frozen=True)
class Divergence:
    """A detected price/RSI divergence, stamped at the second pivot."""

    time: int
    value: float
    kind: Literal["bullish", "bearish"]

    @property
    def label(self) -> str:
        return "Bull" if self.kind == "bullish" else "Bear"


@dataclass
class RSIConfig:
    """Configuration for the advanced RSI study."""

    period: int = 14
    source: PriceSource | str = PriceSource.CLOSE
    ma_type: MAType | str = MAType.NONE
    ma_length: int = 14
    bb_mult: float = 2.0
    calculate_divergence: bool = False
    # Divergence detection settings
    pivot_left: int = 5
    pivot_right: int = 5
    range_lower: int = 5  # Minimum RSI bars between pivots
    range_upper: int = 60  # Maximum RSI bars between pivots

    def __post_init__(self) -> None:
        self.source = PriceSource.parse(self.source)
        self.ma_type = MAType.parse(self.ma_type)
        # Clamp numeric settings into valid ranges
        for name in ("period", "ma_length", "pivot_left", "pivot_right"):
            value = getattr(self, name)
            if value < 1:
                logger.debug(f"RSIConfig.{name}={value} clamped to 1")
                setattr(self, name, 1)
        if self.bb_mult < 0:
            logger.debug(f"RSIConfig.bb_mult={self.bb_mult} clamped to 0")
            self.bb_mult = 0.0
        self.range_lower = max(1, self.range_lower)
        self.range_upper = max(self.range_lower, self.range_upper)


@dataclass
class AdvancedRSIResult:
    """Result of the advanced RSI study."""

    rsi: list[Point]
    ma: list[Point] = field(default_factory=list)
    bb_upper: list[Point] = field(default_factory=list)
    bb_lower: list[Point] = field(default_factory=list)
    bull_divergences: list[Divergence] = field(default_factory=list)
    bear_divergences: list[Divergence] = field(default_factory=list)

    @property
    def latest(self) -> float | None:
        """Most recent RSI value."""
        return self.rsi[-1].value if self.rsi else None


def _smooth(rsi_values: list[Point], bars: Sequence[Bar], config: RSIConfig) -> list[Point]:
    """Apply the configured moving average to the RSI line."""
    length = config.ma_length
    ma_type = config.ma_type

    if ma_type in (MAType.SMA, MAType.BB):
        return sma(rsi_values, length)
    if ma_type is MAType.EMA:
        return ema(rsi_values, length)
    if ma_type is MAType.SMMA:
        return rma(rsi_values, length)
    if ma_type is MAType.WMA:
        return wma(rsi_values, length)
    if ma_type is MAType.VWMA:
        volume_by_time = {bar.time: bar.volume for bar in bars}
        return vwma(rsi_values, length, volume_by_time=volume_by_time)
    return []


def _bollinger_bands(
    basis: list[Point],
    rsi_values: list[Point],
    length: int,
    mult: float,
) -> tuple[list[Point], list[Point]]:
    """Upper/lower bands = basis +/- mult * stdev, joined on time."""
    deviation = {p.time: p.value for p in stdev(rsi_values, length)}
    upper: list[Point] = []
    lower: list[Point] = []
    for point in basis:
        sd = deviation.get(point.time)
        if sd is None:
            continue
        upper.append(Point(time=point.time, value=point.value + sd * mult))
        lower.append(Point(time=point.time, value=point.value - sd * mult))
    return upper, lower


def detect_divergences(
    bars: Sequence[Bar],
    rsi_values: Sequence[Point],
    config: RSIConfig | None = None,
) -> tuple[list[Divergence], list[Divergence]]:
    """
    Detect RSI/price divergences between consecutive RSI pivots.

    Bullish: price makes a lower low while RSI makes a higher low.
    Bearish: price makes a higher high while RSI makes a lower high.
    Only pivot pairs range_lower..range_upper RSI bars apart are compared.

    Args:
        bars: Price bars the RSI was computed from
        rsi_values: RSI series
        config: Pivot window and range settings (defaults if None)

    Returns:
        (bullish_divergences, bearish_divergences)
    """
    config = config or RSIConfig()
    bar_by_time = {bar.time: bar for bar in bars}

    def in_range(prev: Pivot, curr: Pivot) -> bool:
        return config.range_lower <= curr.index - prev.index <= config.range_upper

    bullish: list[Divergence] = []
    lows = find_pivot_lows(rsi_values, config.pivot_left, config.pivot_right)
    for prev, curr in zip(lows, lows[1:]):
        if not in_range(prev, curr):
            continue
        prev_bar = bar_by_time.get(prev.time)
        curr_bar = bar_by_time.get(curr.time)
        if prev_bar is None or curr_bar is None:
            continue
        if curr_bar.low < prev_bar.low and curr.value > prev.value:
            bullish.append(Divergence(time=curr.time, value=curr.value, kind="bullish"))

    bearish: list[Divergence] = []
    highs = find_pivot_highs(rsi_values, config.pivot_left, config.pivot_right)
    for prev, curr in zip(highs, highs[1:]):
        if not in_range(prev, curr):
            continue
        prev_bar = bar_by_time.get(prev.time)
        curr_bar = bar_by_time.get(curr.time)
        if prev_bar is None or curr_bar is None:
            continue
        if curr_bar.high > prev_bar.high and curr.value < prev.value:
            bearish.append(Divergence(time=curr.time, value=curr.value, kind="bearish"))

    return bullish, bearish


def advanced_rsi(bars: Sequence[Bar], config: RSIConfig | None = None) -> AdvancedRSIResult:
    """
    Calculate RSI with optional smoothing, Bollinger Bands and divergences.

    Args:
        bars: Price bars (oldest first)
        config: Study settings (defaults if None)

    Returns:
        AdvancedRSIResult; every series is empty when bars are insufficient
    """
    config = config or RSIConfig()
    rsi_values = rsi(bars, config.period, config.source)
    result = AdvancedRSIResult(rsi=rsi_values)

    if not rsi_values:
        return result

    result.ma = _smooth(rsi_values, bars, config)

    if config.ma_type is MAType.BB:
        result.bb_upper, result.bb_lower = _bollinger_bands(
            result.ma, rsi_values, config.ma_length, config.bb_mult
        )

    if config.calculate_divergence:
        result.bull_divergences, result.bear_divergences = detect_divergences(
            bars, rsi_values, config
        )
        logger.debug(
            f"RSI divergences: {len(result.bull_divergences)} bullish, "
            f"{len(result.bear_divergences)} bearish"
        )

    return result
