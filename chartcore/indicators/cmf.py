"""
CMF Indicator - Chaikin Money Flow.

Volume-weighted accumulation/distribution over a trailing window.
Positive values indicate buying pressure, negative values selling pressure.
"""

import logging
from collections.abc import Sequence

from chartcore.core.models import Bar, Point

logger = logging.getLogger(__name__)


def money_flow_volume(bar: Bar) -> float:
    """
    Accumulation/distribution volume for a single bar.

    ((2 * close - low - high) / (high - low)) * volume, 0 for a zero-range bar.
    """
    if bar.high == bar.low:
        return 0.0
    return ((2 * bar.close - bar.low - bar.high) / (bar.high - bar.low)) * bar.volume


def cmf(bars: Sequence[Bar], length: int = 20) -> list[Point]:
    """
    Calculate Chaikin Money Flow series.

    CMF = sum(money flow volume) / sum(volume) over the last `length` bars,
    0 when the window carries no volume.

    Args:
        bars: Bars (oldest first)
        length: Lookback period (default 20)

    Returns:
        List of CMF points, the first at index length - 1
    """
    if length <= 0 or len(bars) < length:
        return []

    ad_values = [money_flow_volume(bar) for bar in bars]
    volumes = [bar.volume for bar in bars]

    if sum(volumes) == 0:
        logger.warning("Chaikin Money Flow: no volume data provided")

    result: list[Point] = []
    for i in range(length - 1, len(bars)):
        ad_sum = sum(ad_values[i - length + 1 : i + 1])
        vol_sum = sum(volumes[i - length + 1 : i + 1])
        result.append(Point(time=bars[i].time, value=ad_sum / vol_sum if vol_sum != 0 else 0.0))

    return result
