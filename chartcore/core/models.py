"""
Core data models for the indicator engine.

Contains dataclasses for:
- Bar: a single OHLCV observation
- Point: one value of a derived time series
- CVDCandle: cumulative volume delta expressed as a candle
- PriceSource: the bar fields an indicator may read
"""

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidConfigurationError


class PriceSource(Enum):
    """Bar field used as indicator input."""

    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"
    VOLUME = "volume"
    HL2 = "hl2"
    HLC3 = "hlc3"
    OHLC4 = "ohlc4"

    @classmethod
    def parse(cls, value: "PriceSource | str") -> "PriceSource":
        """Accept either a member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise InvalidConfigurationError(f"Unknown price source: {value!r}") from e


@dataclass(frozen=True)
class Bar:
    """
    Single OHLCV bar.

    time is the bar open in Unix seconds. Series of bars are expected to be
    strictly ascending by time with no duplicates.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def hl2(self) -> float:
        return (self.high + self.low) / 2

    @property
    def hlc3(self) -> float:
        return (self.high + self.low + self.close) / 3

    @property
    def ohlc4(self) -> float:
        return (self.open + self.high + self.low + self.close) / 4

    @property
    def is_up(self) -> bool:
        """Up bar for volume classification (close >= open)."""
        return self.close >= self.open

    @property
    def price_range(self) -> float:
        return self.high - self.low

    def value_of(self, source: PriceSource | str) -> float:
        """Read the given source field from this bar."""
        return float(getattr(self, PriceSource.parse(source).value))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Bar":
        """Create from dictionary. A missing or null volume becomes 0."""
        volume = data.get("volume")
        return cls(
            time=int(data["time"]),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(volume) if volume not in (None, "") else 0.0,
        )


@dataclass(frozen=True)
class Point:
    """A derived {time, value} pair. value is None for a missing observation."""

    time: int
    value: float | None

    def to_dict(self) -> dict:
        return {"time": self.time, "value": self.value}


@dataclass(frozen=True)
class CVDCandle:
    """
    Cumulative volume delta for one target-timeframe candle.

    open/high/low/close are cumulative delta values, not prices.
    underlying is the price candle the values were computed for.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    underlying: Bar

    @property
    def is_bullish(self) -> bool:
        """Returns True if delta accumulated during the candle was non-negative."""
        return self.close >= self.open

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "underlying": self.underlying.to_dict(),
        }
