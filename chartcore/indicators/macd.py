"""
MACD Indicator - Moving Average Convergence Divergence.

Trend-following momentum indicator showing the relationship
between two exponential moving averages of price.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from chartcore.core.models import Bar, Point, PriceSource

from .moving_averages import ema


@dataclass
class MACDPoint:
    """MACD values at a single timestamp."""

    time: int
    macd_line: float  # Fast EMA - Slow EMA
    signal_line: float  # EMA of MACD line
    histogram: float  # MACD line - Signal line

    @property
    def is_bullish(self) -> bool:
        """True if MACD is above signal line."""
        return self.histogram > 0

    @property
    def is_bearish(self) -> bool:
        """True if MACD is below signal line."""
        return self.histogram < 0


@dataclass
class MACDResult:
    """MACD line, signal line and histogram series."""

    macd: list[Point] = field(default_factory=list)
    signal: list[Point] = field(default_factory=list)
    histogram: list[Point] = field(default_factory=list)

    def points(self) -> Iterator[MACDPoint]:
        """Yield joined values for every timestamp that has a histogram value."""
        macd_by_time = {p.time: p.value for p in self.macd}
        signal_by_time = {p.time: p.value for p in self.signal}
        for h in self.histogram:
            yield MACDPoint(
                time=h.time,
                macd_line=macd_by_time[h.time],
                signal_line=signal_by_time[h.time],
                histogram=h.value,
            )

    def latest(self) -> MACDPoint | None:
        """Most recent fully-formed MACD value, or None if there is none."""
        if not self.histogram:
            return None
        last = self.histogram[-1]
        return MACDPoint(
            time=last.time,
            macd_line=self.macd[-1].value,
            signal_line=self.signal[-1].value,
            histogram=last.value,
        )


def _inner_join(left: list[Point], right: list[Point]) -> list[tuple[int, float, float]]:
    """Pair values present in both series, in left's time order."""
    right_by_time = {p.time: p.value for p in right}
    return [(p.time, p.value, right_by_time[p.time]) for p in left if p.time in right_by_time]


def macd(
    bars: Sequence[Bar],
    fast_length: int = 12,
    slow_length: int = 26,
    signal_length: int = 9,
    source: PriceSource | str = "close",
) -> MACDResult:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    MACD Line = Fast EMA - Slow EMA
    Signal Line = EMA of MACD Line
    Histogram = MACD Line - Signal Line

    Each output only holds timestamps where all of its inputs exist
    (inner join on time).

    Args:
        bars: Price bars (oldest first)
        fast_length: Fast EMA period (default 12)
        slow_length: Slow EMA period (default 26)
        signal_length: Signal line EMA period (default 9)
        source: Bar field to average (default close)

    Returns:
        MACDResult; series are empty when data is insufficient
    """
    fast_ema = ema(bars, fast_length, source)
    slow_ema = ema(bars, slow_length, source)

    macd_line = [Point(time=t, value=f - s) for t, f, s in _inner_join(fast_ema, slow_ema)]
    signal_line = ema(macd_line, signal_length)
    histogram = [Point(time=t, value=m - s) for t, m, s in _inner_join(macd_line, signal_line)]

    return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)
