"""
Volume Profile Indicator Functions.

Pure functions for analyzing a computed Profile, plus the fixed-range
entry point that selects bars for a time window and builds the profile.

Functions:
- calculate_frvp: Profile for the bars inside [start_time, end_time]
- get_row_at_price: Row containing a price
- get_hvn_rows: High Volume Nodes
- get_lvn_rows: Low Volume Nodes
- get_delta_extremes: Rows with the most extreme delta
- is_price_in_value_area: Value Area membership test
- get_profile_stats: Summary dictionary
"""

import logging
from collections.abc import Sequence

from chartcore.core.errors import EmptyInputError
from chartcore.core.models import Bar
from chartcore.core.sessions import filter_market_hours

from .calculator import FRVPCalculator
from .config import DEFAULT_FRVP_CONFIG, FRVPConfig, merge_frvp_config
from .models import Profile, ProfileRow

logger = logging.getLogger(__name__)


def calculate_frvp(
    bars: Sequence[Bar],
    start_time: int | None = None,
    end_time: int | None = None,
    config: FRVPConfig | dict | None = None,
    market_hours_only: bool = False,
) -> Profile:
    """
    Fixed Range Volume Profile for the bars inside a time window.

    Args:
        bars: Fine-grained bars (oldest first), typically 1-minute
        start_time: Inclusive window start in Unix seconds (None = unbounded)
        end_time: Inclusive window end in Unix seconds (None = unbounded)
        config: FRVPConfig, or a camelCase dict merged onto the defaults
        market_hours_only: Keep only bars inside the 09:15-15:30 IST session

    Returns:
        Computed Profile

    Raises:
        EmptyInputError: If no bars remain after filtering
    """
    if isinstance(config, dict):
        settings = merge_frvp_config(DEFAULT_FRVP_CONFIG, config)
    else:
        settings = config or DEFAULT_FRVP_CONFIG
    settings = settings.validate()

    selected = [
        bar
        for bar in bars
        if (start_time is None or bar.time >= start_time)
        and (end_time is None or bar.time <= end_time)
    ]
    if market_hours_only:
        selected = filter_market_hours(selected)

    if not selected:
        raise EmptyInputError("No bars available in the requested FRVP range")

    profile = FRVPCalculator(settings).calculate_profile(selected)

    logger.info(
        f"FRVP: POC at {profile.poc.price_level:.2f}, VAH {profile.vah.price_level:.2f}, "
        f"VAL {profile.val.price_level:.2f} | total volume {profile.total_volume:.0f}, "
        f"{profile.row_count} rows, {profile.total_bars} bars"
    )
    return profile


def get_row_at_price(profile: Profile, price: float) -> ProfileRow | None:
    """
    Row whose [price_low, price_high] contains price.

    Returns:
        Matching row (the lower one on a shared boundary), or None outside the profile
    """
    for row in profile.rows:
        if row.contains(price):
            return row
    return None


def get_hvn_rows(
    profile: Profile,
    threshold_pct: float = 0.8,
    min_levels: int = 1,
) -> list[ProfileRow]:
    """
    High Volume Nodes - rows with above-threshold volume.

    HVNs are areas of price acceptance where significant trading occurred.
    They often act as support/resistance zones.

    Args:
        profile: Profile to analyze
        threshold_pct: Percentile threshold (0.8 = top 20% by volume)
        min_levels: Minimum number of rows to return

    Returns:
        Rows sorted by volume (highest first)
    """
    if not profile.rows:
        return []

    ranked = sorted(profile.rows, key=lambda r: r.total_volume, reverse=True)
    cutoff = max(min_levels, int(len(ranked) * (1 - threshold_pct)))
    return ranked[:cutoff]


def get_lvn_rows(
    profile: Profile,
    threshold_pct: float = 0.2,
    min_levels: int = 1,
) -> list[ProfileRow]:
    """
    Low Volume Nodes - rows with below-threshold volume.

    LVNs are areas of price rejection where trading was sparse.

    Args:
        profile: Profile to analyze
        threshold_pct: Percentile threshold (0.2 = bottom 20% by volume)
        min_levels: Minimum number of rows to return

    Returns:
        Rows sorted by volume (lowest first)
    """
    if not profile.rows:
        return []

    ranked = sorted(profile.rows, key=lambda r: r.total_volume)
    cutoff = max(min_levels, int(len(ranked) * threshold_pct))
    return ranked[:cutoff]


def get_delta_extremes(
    profile: Profile,
    top_n: int = 3,
) -> tuple[list[ProfileRow], list[ProfileRow]]:
    """
    Rows with the most extreme delta values.

    Returns:
        (highest_delta_rows, lowest_delta_rows), most extreme first
    """
    if not profile.rows:
        return ([], [])

    by_delta = sorted(profile.rows, key=lambda r: r.delta, reverse=True)
    return (by_delta[:top_n], by_delta[-top_n:][::-1])


def is_price_in_value_area(profile: Profile, price: float) -> bool:
    """True if price lies between VAL's low edge and VAH's high edge."""
    return profile.val.price_low <= price <= profile.vah.price_high


def get_profile_stats(profile: Profile) -> dict:
    """
    Get summary statistics for a profile.

    Returns:
        Dictionary with key levels, volume totals and node lists
    """
    highest, lowest = get_delta_extremes(profile)

    return {
        "poc": profile.poc.price_level,
        "value_area_high": profile.vah.price_level,
        "value_area_low": profile.val.price_level,
        "value_area_volume": profile.value_area_volume,
        "total_volume": profile.total_volume,
        "total_delta": profile.total_delta,
        "row_count": profile.row_count,
        "total_bars": profile.total_bars,
        "price_range": (profile.profile_low, profile.profile_high),
        "hvn_levels": [row.price_level for row in get_hvn_rows(profile)],
        "lvn_levels": [row.price_level for row in get_lvn_rows(profile)],
        "highest_delta_levels": [(row.price_level, row.delta) for row in highest],
        "lowest_delta_levels": [(row.price_level, row.delta) for row in lowest],
    }
