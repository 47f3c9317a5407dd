"""
Fixed Range Volume Profile Module.

Provides Volume Profile analysis over a bar range:
- Data models (ProfileRow, ValueArea, DevelopingPoint, Profile, FormattedRow)
- Configuration (FRVPConfig with validation, merging and presets)
- FRVPCalculator (rows, volume distribution, POC, Value Area, developing levels)
- Indicator functions (window entry point, HVN/LVN, delta, stats)
"""

from .calculator import MAX_DEVELOPING_SAMPLES, FRVPCalculator, overlap_ratio
from .config import (
    DEFAULT_FRVP_CONFIG,
    MAX_ROWS,
    FRVPConfig,
    Placement,
    RowsLayout,
    VolumeDisplay,
    get_frvp_presets,
    merge_frvp_config,
    validate_frvp_config,
)
from .indicator import (
    calculate_frvp,
    get_delta_extremes,
    get_hvn_rows,
    get_lvn_rows,
    get_profile_stats,
    get_row_at_price,
    is_price_in_value_area,
)
from .models import DevelopingPoint, FormattedRow, Profile, ProfileRow, ValueArea

__all__ = [
    # Data models
    "ProfileRow",
    "ValueArea",
    "DevelopingPoint",
    "Profile",
    "FormattedRow",
    # Configuration
    "FRVPConfig",
    "RowsLayout",
    "VolumeDisplay",
    "Placement",
    "DEFAULT_FRVP_CONFIG",
    "merge_frvp_config",
    "validate_frvp_config",
    "get_frvp_presets",
    # Calculator
    "FRVPCalculator",
    "MAX_DEVELOPING_SAMPLES",
    "MAX_ROWS",
    "overlap_ratio",
    # Indicator functions
    "calculate_frvp",
    "get_row_at_price",
    "get_hvn_rows",
    "get_lvn_rows",
    "get_delta_extremes",
    "is_price_in_value_area",
    "get_profile_stats",
]
