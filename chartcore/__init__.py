"""
chartcore - indicator engine for OHLCV chart overlays.

Computes smoothing averages, RSI with divergences, MACD, Chaikin Money
Flow, anchored Cumulative Volume Delta candles and Fixed Range Volume
Profiles from plain bar series.
"""

from .core import Bar, CVDCandle, IndicatorError, IndicatorSettings, Point
from .indicators import advanced_rsi, calculate_cvd, calculate_frvp, cmf, macd, rsi

__version__ = "0.1.0"

__all__ = [
    "Bar",
    "Point",
    "CVDCandle",
    "IndicatorError",
    "IndicatorSettings",
    "rsi",
    "advanced_rsi",
    "macd",
    "cmf",
    "calculate_cvd",
    "calculate_frvp",
]
