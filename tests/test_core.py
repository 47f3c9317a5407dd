"""
Unit tests for core models, the exchange calendar and candle aggregation.
"""

from datetime import datetime

import pytest

from chartcore.core.candle_aggregator import CandleAggregator, aggregate_bars, bucket_start
from chartcore.core.errors import EmptyInputError, IndicatorError, InvalidConfigurationError
from chartcore.core.models import Bar, CVDCandle, Point, PriceSource
from chartcore.core.sessions import (
    IST,
    filter_market_hours,
    format_time_ist,
    is_market_hours,
)


def ist(hour: int, minute: int) -> int:
    return int(datetime(2024, 1, 15, hour, minute, tzinfo=IST).timestamp())


class TestBar:
    """Tests for the Bar model."""

    def test_derived_prices(self) -> None:
        """hl2, hlc3, ohlc4 and source lookup read the right fields."""
        bar = Bar(time=0, open=10, high=14, low=8, close=12, volume=5)
        assert bar.hl2 == 11
        assert bar.hlc3 == pytest.approx(34 / 3)
        assert bar.ohlc4 == 11
        assert bar.price_range == 6
        assert bar.value_of("ohlc4") == 11
        assert bar.value_of(PriceSource.VOLUME) == 5

    def test_is_up_includes_doji(self) -> None:
        """A doji counts as an up bar."""
        assert Bar(time=0, open=10, high=10, low=10, close=10).is_up
        assert not Bar(time=0, open=10, high=10, low=9, close=9).is_up

    def test_from_dict_null_volume(self) -> None:
        """String fields are parsed and a null volume becomes 0."""
        bar = Bar.from_dict({"time": "60", "open": "1", "high": "2", "low": "0.5", "close": "1.5",
                             "volume": None})
        assert bar == Bar(time=60, open=1.0, high=2.0, low=0.5, close=1.5, volume=0.0)

    def test_to_dict(self) -> None:
        """to_dict output rebuilds the same bar."""
        bar = Bar(time=1, open=1, high=2, low=0, close=1, volume=3)
        assert Bar.from_dict(bar.to_dict()) == bar

    def test_unknown_source(self) -> None:
        """An unknown price source is rejected."""
        with pytest.raises(InvalidConfigurationError):
            Bar(time=0, open=1, high=1, low=1, close=1).value_of("vwap")

    def test_point_and_cvd_candle_dicts(self) -> None:
        """Point and CVDCandle serialize to plain dictionaries."""
        assert Point(time=5, value=None).to_dict() == {"time": 5, "value": None}
        underlying = Bar(time=0, open=1, high=2, low=0, close=1)
        candle = CVDCandle(time=0, open=0, high=10, low=-5, close=-2, underlying=underlying)
        assert not candle.is_bullish
        assert candle.to_dict()["underlying"]["high"] == 2


class TestErrors:
    def test_hierarchy(self) -> None:
        """Input errors are both IndicatorError and ValueError."""
        error = EmptyInputError("no bars")
        assert isinstance(error, IndicatorError)
        assert isinstance(error, ValueError)
        assert error.message == "no bars"


class TestSessions:
    """Tests for IST market-hours helpers."""

    def test_format_time_ist(self) -> None:
        """Timestamps are formatted on the IST wall clock."""
        assert format_time_ist(ist(9, 15)) == "09:15"
        # 00:00 UTC is 05:30 IST
        assert format_time_ist(0) == "05:30"

    def test_market_hours_inclusive(self) -> None:
        """The session includes both 09:15 and 15:30."""
        assert is_market_hours(ist(9, 15))
        assert is_market_hours(ist(15, 30))
        assert not is_market_hours(ist(9, 14))
        assert not is_market_hours(ist(15, 31))

    def test_filter_market_hours(self) -> None:
        """Bars outside the session are dropped."""
        bars = [Bar(time=ist(h, m), open=1, high=1, low=1, close=1)
                for h, m in [(9, 0), (9, 30), (16, 0)]]
        assert [b.time for b in filter_market_hours(bars)] == [ist(9, 30)]


class TestCandleAggregator:
    """Tests for resampling minute bars."""

    def minutes(self, count: int) -> list[Bar]:
        return [
            Bar(time=i * 60, open=100 + i, high=101 + i, low=99 + i, close=100.5 + i, volume=10)
            for i in range(count)
        ]

    def test_bucket_start(self) -> None:
        """Timestamps floor to the start of their interval."""
        assert bucket_start(299, 300) == 0
        assert bucket_start(300, 300) == 300

    def test_aggregate_bars(self) -> None:
        """Minute bars fold into OHLCV candles."""
        candles = aggregate_bars(self.minutes(10), timeframe_minutes=5)
        assert len(candles) == 2
        first = candles[0]
        assert (first.time, first.open, first.high, first.low, first.close, first.volume) == (
            0, 100, 105, 99, 104.5, 50
        )
        assert candles[1].time == 300

    def test_partial_last_candle(self) -> None:
        """The unfinished last interval still produces a candle."""
        candles = aggregate_bars(self.minutes(7), timeframe_minutes=5)
        assert candles[-1].volume == 20

    def test_gaps_produce_no_candle(self) -> None:
        """Intervals without bars are skipped."""
        bars = [self.minutes(1)[0], Bar(time=900, open=1, high=2, low=0, close=1, volume=1)]
        assert [c.time for c in aggregate_bars(bars, 5)] == [0, 900]

    def test_add_bar_returns_completed(self) -> None:
        """add_bar returns a candle only when an interval closes."""
        aggregator = CandleAggregator(5)
        bars = self.minutes(6)
        completed = [aggregator.add_bar(b) for b in bars]
        assert completed[:5] == [None] * 5
        assert completed[5].time == 0
        assert aggregator.flush().time == 300
        assert aggregator.flush() is None

    def test_invalid_timeframe(self) -> None:
        """A non-positive timeframe is rejected."""
        with pytest.raises(ValueError):
            CandleAggregator(0)
