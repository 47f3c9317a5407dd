"""
Technical Indicators Module - Pure math functions for chart overlays.

All functions are stateless and operate on Bar / Point sequences,
returning new series without mutating their input.
"""

from .cmf import cmf
from .cvd import bar_delta, calculate_cvd, cvd_for_candle, minute_deltas
from .macd import MACDPoint, MACDResult, macd
from .moving_averages import ema, latest_ema, latest_sma, rma, sma, stdev, vwma, wma
from .rsi import (
    AdvancedRSIResult,
    Divergence,
    MAType,
    Pivot,
    RSIConfig,
    advanced_rsi,
    detect_divergences,
    find_pivot_highs,
    find_pivot_lows,
    rsi,
    rsi_value,
)
from .volume_profile import (
    FRVPCalculator,
    FRVPConfig,
    Profile,
    ProfileRow,
    RowsLayout,
    calculate_frvp,
    get_profile_stats,
)

__all__ = [
    # Moving Averages
    "sma",
    "ema",
    "rma",
    "wma",
    "vwma",
    "stdev",
    "latest_sma",
    "latest_ema",
    # RSI
    "rsi",
    "rsi_value",
    "advanced_rsi",
    "detect_divergences",
    "find_pivot_lows",
    "find_pivot_highs",
    "RSIConfig",
    "MAType",
    "Pivot",
    "Divergence",
    "AdvancedRSIResult",
    # MACD
    "macd",
    "MACDResult",
    "MACDPoint",
    # CVD
    "bar_delta",
    "minute_deltas",
    "cvd_for_candle",
    "calculate_cvd",
    # CMF
    "cmf",
    # Volume Profile
    "FRVPCalculator",
    "FRVPConfig",
    "RowsLayout",
    "Profile",
    "ProfileRow",
    "calculate_frvp",
    "get_profile_stats",
]
