"""
Candle Aggregator - Resample finer bars into target-timeframe candles.

Lets callers build the chart's target candles (e.g. 5-minute) from the
same 1-minute feed that drives CVD and the volume profile.
"""

from collections.abc import Iterable

from .models import Bar


def bucket_start(timestamp: int, timeframe_seconds: int) -> int:
    """Get the start of the interval containing timestamp."""
    return (timestamp // timeframe_seconds) * timeframe_seconds


class CandleAggregator:
    """
    Aggregates bars into OHLCV candles of a fixed timeframe.

    Call add_bar() with each bar in time order. When an interval boundary is
    crossed, the completed candle is returned and a new one begins.
    """

    def __init__(self, timeframe_minutes: int):
        """
        Initialize the aggregator.

        Args:
            timeframe_minutes: Target candle size in minutes
        """
        if timeframe_minutes <= 0:
            raise ValueError(f"timeframe_minutes must be positive, got {timeframe_minutes}")

        self.timeframe_seconds = timeframe_minutes * 60

        # Current candle being built
        self._current_interval: int | None = None
        self._current_open: float = 0.0
        self._current_high: float = 0.0
        self._current_low: float = float("inf")
        self._current_close: float = 0.0
        self._current_volume: float = 0.0

    def add_bar(self, bar: Bar) -> Bar | None:
        """
        Add a bar to the aggregator.

        Args:
            bar: Next bar (must not be older than the previous one)

        Returns:
            Completed candle if an interval boundary was crossed, else None
        """
        interval = bucket_start(bar.time, self.timeframe_seconds)

        completed = None
        if self._current_interval is None:
            self._start_candle(interval, bar)
        elif interval > self._current_interval:
            completed = self._close_candle()
            self._start_candle(interval, bar)

        self._update_candle(bar)
        return completed

    def flush(self) -> Bar | None:
        """Close and return the candle in progress, if any."""
        if self._current_interval is None:
            return None
        candle = self._close_candle()
        self._current_interval = None
        return candle

    def _start_candle(self, interval: int, bar: Bar) -> None:
        """Start a new candle at the given interval."""
        self._current_interval = interval
        self._current_open = bar.open
        self._current_high = bar.high
        self._current_low = bar.low
        self._current_close = bar.close
        self._current_volume = 0.0

    def _update_candle(self, bar: Bar) -> None:
        """Fold a bar into the current candle."""
        self._current_high = max(self._current_high, bar.high)
        self._current_low = min(self._current_low, bar.low)
        self._current_close = bar.close
        self._current_volume += bar.volume

    def _close_candle(self) -> Bar:
        """Build the candle for the current interval."""
        assert self._current_interval is not None
        return Bar(
            time=self._current_interval,
            open=self._current_open,
            high=self._current_high,
            low=self._current_low,
            close=self._current_close,
            volume=self._current_volume,
        )


def aggregate_bars(bars: Iterable[Bar], timeframe_minutes: int) -> list[Bar]:
    """
    Resample time-ordered bars into candles of timeframe_minutes.

    Candle time is floor(t / tf) * tf. Intervals with no bars produce no candle.

    Args:
        bars: Bars in ascending time order
        timeframe_minutes: Target candle size in minutes

    Returns:
        List of aggregated candles
    """
    aggregator = CandleAggregator(timeframe_minutes)
    candles: list[Bar] = []

    for bar in bars:
        completed = aggregator.add_bar(bar)
        if completed is not None:
            candles.append(completed)

    last = aggregator.flush()
    if last is not None:
        candles.append(last)

    return candles
