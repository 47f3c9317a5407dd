"""
Core types shared by every indicator engine.
"""

from .candle_aggregator import CandleAggregator, aggregate_bars
from .config import DEFAULT_SETTINGS, IndicatorSettings
from .errors import (
    EmptyInputError,
    IndicatorError,
    InsufficientDataError,
    InvalidConfigurationError,
)
from .models import Bar, CVDCandle, Point, PriceSource
from .sessions import (
    IST,
    AnchorPeriod,
    anchor_period_start,
    filter_market_hours,
    format_time_ist,
    is_market_hours,
)

__all__ = [
    # Models
    "Bar",
    "Point",
    "CVDCandle",
    "PriceSource",
    # Errors
    "IndicatorError",
    "EmptyInputError",
    "InsufficientDataError",
    "InvalidConfigurationError",
    # Settings
    "IndicatorSettings",
    "DEFAULT_SETTINGS",
    # Calendar
    "IST",
    "AnchorPeriod",
    "anchor_period_start",
    "filter_market_hours",
    "format_time_ist",
    "is_market_hours",
    # Aggregation
    "CandleAggregator",
    "aggregate_bars",
]
