"""
Fixed Range Volume Profile Calculator.

Builds a volume profile from fine-grained (typically 1-minute) OHLCV bars:

1. Price range = [min(low), max(high)] over the bars
2. Split the range into equal-height rows (Number / Tick / Percentage layout)
3. Spread each bar's volume over the rows its [low, high] overlaps,
   proportional to the overlap length (up bar: close >= open)
4. POC = row with the most volume (lowest row wins a tie)
5. Value Area = expand from the POC towards the larger neighbour until the
   target share of volume would be exceeded

Usage:
    calculator = FRVPCalculator(FRVPConfig(row_size=24))
    profile = calculator.calculate_profile(minute_bars)
    print(f"POC: {profile.poc.price_level}")
"""

import logging
import math
from collections.abc import Sequence

from chartcore.core.errors import EmptyInputError
from chartcore.core.models import Bar

from .config import DEFAULT_FRVP_CONFIG, MAX_ROWS, FRVPConfig, RowsLayout
from .models import DevelopingPoint, FormattedRow, Profile, ProfileRow, ValueArea

logger = logging.getLogger(__name__)

# Upper bound on developing-profile samples
MAX_DEVELOPING_SAMPLES = 50


def overlap_ratio(bar_low: float, bar_high: float, row_low: float, row_high: float) -> float:
    """
    Fraction of the bar's range that lies inside the row.

    Returns:
        0-1; 0 for a zero-range bar
    """
    bar_range = bar_high - bar_low
    if bar_range <= 0:
        return 0.0
    overlap = min(bar_high, row_high) - max(bar_low, row_low)
    return max(0.0, overlap) / bar_range


class FRVPCalculator:
    """
    Computes Fixed Range Volume Profiles.

    The calculator holds only its default configuration; every call to
    calculate_profile builds and owns a fresh row set.
    """

    def __init__(self, config: FRVPConfig | None = None):
        """
        Initialize the calculator.

        Args:
            config: Default configuration (validated copy is kept)
        """
        self.config = (config or DEFAULT_FRVP_CONFIG).validate()

    def calculate_profile(self, bars: Sequence[Bar], config: FRVPConfig | None = None) -> Profile:
        """
        Calculate the volume profile for a set of bars.

        Args:
            bars: Bars spanning the profile window (oldest first)
            config: Overrides the calculator's configuration for this call

        Returns:
            Profile with rows, POC, VAH/VAL and optional developing levels

        Raises:
            EmptyInputError: If bars is empty
        """
        if not bars:
            raise EmptyInputError("No data provided for FRVP calculation")

        settings = config.validate() if config is not None else self.config

        profile_high = max(bar.high for bar in bars)
        profile_low = min(bar.low for bar in bars)

        rows = self.create_price_level_rows(profile_low, profile_high, settings)
        self.distribute_volume(bars, rows)

        poc = self.calculate_poc(rows)
        value_area = self.calculate_value_area(rows, poc, settings.value_area_volume)

        developing = None
        if settings.developing_enabled:
            developing = self.calculate_developing(bars, settings)

        profile = Profile(
            rows=rows,
            poc=poc,
            vah=value_area.vah,
            val=value_area.val,
            value_area_rows=value_area.rows,
            profile_high=profile_high,
            profile_low=profile_low,
            total_bars=len(bars),
            value_area_volume=value_area.accumulated_volume,
            developing=developing,
        )

        logger.debug(
            f"FRVP: range {profile_low:.2f}-{profile_high:.2f}, {len(rows)} rows, "
            f"POC {poc.price_level:.2f}, VAH {value_area.vah.price_level:.2f}, "
            f"VAL {value_area.val.price_level:.2f}"
        )
        return profile

    def row_count(self, price_range: float, config: FRVPConfig) -> int:
        """
        Number of rows for a price range under the configured layout.

        - Number: row_size rows
        - Tick: ceil(range / row_size)
        - Percentage: ceil(range / (range * row_size / 100))

        Always between 1 and MAX_ROWS.
        """
        if config.rows_layout is RowsLayout.NUMBER:
            count = int(config.row_size)
        elif price_range <= 0:
            count = 1
        else:
            if config.rows_layout is RowsLayout.TICK:
                row_height = config.row_size
            else:
                row_height = price_range * config.row_size / 100
            ratio = price_range / row_height if row_height > 0 else math.inf
            count = math.ceil(ratio) if math.isfinite(ratio) else MAX_ROWS + 1

        if count > MAX_ROWS:
            logger.debug(f"FRVP: {count} rows capped to {MAX_ROWS}")
        return max(1, min(count, MAX_ROWS))

    def create_price_level_rows(
        self,
        low: float,
        high: float,
        config: FRVPConfig | None = None,
    ) -> list[ProfileRow]:
        """
        Create equal-height contiguous rows covering [low, high].

        Row i spans [low + i*h, min(low + (i+1)*h, high)]; the last row ends
        exactly at high.

        Args:
            low: Lowest price in range
            high: Highest price in range
            config: Layout settings (calculator default if None)

        Returns:
            Rows ordered by ascending price
        """
        config = config or self.config
        count = self.row_count(high - low, config)
        height = (high - low) / count

        rows: list[ProfileRow] = []
        for i in range(count):
            price_low = low + i * height
            price_high = high if i == count - 1 else min(price_low + height, high)
            rows.append(ProfileRow(index=i, price_low=price_low, price_high=price_high))

        return rows

    def distribute_volume(self, bars: Sequence[Bar], rows: list[ProfileRow]) -> None:
        """
        Spread each bar's volume across the rows its price range overlaps.

        A row receives volume * overlap / bar_range. Bars with close >= open
        count as up volume, others as down volume. Zero-range bars add nothing.

        Args:
            bars: Bars to distribute
            rows: Contiguous rows from create_price_level_rows (updated in place)
        """
        if not rows:
            return

        low = rows[0].price_low
        height = rows[0].price_high - rows[0].price_low
        last = len(rows) - 1

        for bar in bars:
            if bar.high <= bar.low or bar.volume == 0:
                continue

            # Candidate rows, widened by one to absorb float rounding at edges
            if height > 0:
                first_idx = max(0, int((bar.low - low) / height) - 1)
                last_idx = min(last, int((bar.high - low) / height) + 1)
            else:
                first_idx, last_idx = 0, last

            is_up = bar.is_up
            for row in rows[first_idx : last_idx + 1]:
                ratio = overlap_ratio(bar.low, bar.high, row.price_low, row.price_high)
                if ratio > 0:
                    row.add_volume(bar.volume * ratio, is_up)

    def calculate_poc(self, rows: Sequence[ProfileRow]) -> ProfileRow:
        """
        Point of Control - row with the highest total volume.

        Ties go to the first (lowest-price) row.

        Raises:
            EmptyInputError: If rows is empty
        """
        if not rows:
            raise EmptyInputError("No rows provided for POC calculation")

        poc = rows[0]
        for row in rows[1:]:
            if row.total_volume > poc.total_volume:
                poc = row
        return poc

    def calculate_value_area(
        self,
        rows: Sequence[ProfileRow],
        poc: ProfileRow,
        value_area_volume: float = 70,
    ) -> ValueArea:
        """
        Value Area - rows around the POC holding value_area_volume % of volume.

        Algorithm:
        1. Total volume; if 0 the value area is the POC alone
        2. Target = total * value_area_volume / 100
        3. Start with the POC row
        4. Cursors: above = poc - 1 (walking down), below = poc + 1 (walking up)
        5. While accumulated < target and a cursor is in range:
           - one candidate: take it
           - otherwise take the strictly larger volume
           - tie: take the side closer to the POC, above on equal distance
           - stop (without adding) if the row would exceed the target
           - otherwise add it and advance that cursor
        6. VAH/VAL = highest/lowest price rows in the value area

        Args:
            rows: Rows ordered by ascending price
            poc: Point of Control row
            value_area_volume: Target percentage (default 70)

        Returns:
            ValueArea
        """
        total_volume = sum(row.total_volume for row in rows)
        if total_volume == 0:
            logger.warning("FRVP: total volume is zero, value area is the POC alone")
            return ValueArea(
                vah=poc,
                val=poc,
                rows=frozenset({poc.index}),
                accumulated_volume=0.0,
                target_volume=0.0,
            )

        target_volume = total_volume * value_area_volume / 100

        accumulated = poc.total_volume
        selected = {poc.index}

        poc_index = poc.index
        above = poc_index - 1
        below = poc_index + 1

        while accumulated < target_volume and (above >= 0 or below < len(rows)):
            above_row = rows[above] if above >= 0 else None
            below_row = rows[below] if below < len(rows) else None

            if below_row is None:
                take_above = True
            elif above_row is None:
                take_above = False
            elif above_row.total_volume != below_row.total_volume:
                take_above = above_row.total_volume > below_row.total_volume
            else:
                # Tie: closer to POC wins, above on equal distance
                take_above = (poc_index - above) <= (below - poc_index)

            chosen = above_row if take_above else below_row
            assert chosen is not None

            if accumulated + chosen.total_volume > target_volume:
                break

            selected.add(chosen.index)
            accumulated += chosen.total_volume

            if take_above:
                above -= 1
            else:
                below += 1

        va_rows = sorted((rows[i] for i in selected), key=lambda r: r.price_level)

        return ValueArea(
            vah=va_rows[-1],
            val=va_rows[0],
            rows=frozenset(selected),
            accumulated_volume=accumulated,
            target_volume=target_volume,
        )

    def calculate_developing(
        self,
        bars: Sequence[Bar],
        config: FRVPConfig | None = None,
    ) -> list[DevelopingPoint]:
        """
        Developing POC/VAH/VAL over growing prefixes of the bars.

        Samples at most MAX_DEVELOPING_SAMPLES evenly spaced prefixes with
        step = ceil(n / 50). A floor(n / 50) step would give up to 99
        samples (60 for n = 120); the ceiling keeps the 50-sample bound.
        Prefix profiles are computed with developing indicators switched off.

        Args:
            bars: Bars of the full profile window (oldest first)
            config: Settings (calculator default if None)

        Returns:
            One DevelopingPoint per sampled prefix
        """
        settings = (config or self.config).without_developing()
        step = max(1, math.ceil(len(bars) / MAX_DEVELOPING_SAMPLES))

        developing: list[DevelopingPoint] = []
        for end in range(step, len(bars) + 1, step):
            prefix = bars[:end]
            partial = self.calculate_profile(prefix, settings)
            developing.append(
                DevelopingPoint(
                    timestamp=prefix[-1].time,
                    poc=partial.poc.price_level,
                    vah=partial.vah.price_level,
                    val=partial.val.price_level,
                )
            )

        return developing

    def get_formatted_data(
        self,
        profile: Profile,
        config: FRVPConfig | None = None,
    ) -> list[FormattedRow]:
        """
        Annotate rows for rendering.

        bar_width is the row's volume relative to the largest row, scaled to
        the configured histogram width (percent of the box).
        """
        config = config or self.config
        max_volume = max((row.total_volume for row in profile.rows), default=0.0)
        width = config.volume_profile.width
        placement = config.volume_profile.placement.value

        formatted: list[FormattedRow] = []
        for row in profile.rows:
            ratio = row.total_volume / max_volume if max_volume > 0 else 0.0
            formatted.append(
                FormattedRow(
                    row=row,
                    bar_width=ratio * width,
                    is_poc=row.index == profile.poc.index,
                    is_vah=row.index == profile.vah.index,
                    is_val=row.index == profile.val.index,
                    is_in_value_area=row.index in profile.value_area_rows,
                    placement=placement,
                )
            )
        return formatted
