"""
Unit tests for the Fixed Range Volume Profile.

Tests:
- Row construction for each layout
- Volume distribution (Scenario: two overlapping bars)
- POC and Value Area expansion, including tie-breaks
- Developing POC/VA sampling
- Configuration validation, merging and presets
- Window entry point and profile helpers
"""

from datetime import datetime

import pytest

from chartcore.core.errors import EmptyInputError, InvalidConfigurationError
from chartcore.core.models import Bar
from chartcore.core.sessions import IST
from chartcore.indicators.volume_profile import (
    DEFAULT_FRVP_CONFIG,
    MAX_DEVELOPING_SAMPLES,
    MAX_ROWS,
    FRVPCalculator,
    FRVPConfig,
    ProfileRow,
    RowsLayout,
    calculate_frvp,
    get_delta_extremes,
    get_frvp_presets,
    get_hvn_rows,
    get_lvn_rows,
    get_profile_stats,
    get_row_at_price,
    is_price_in_value_area,
    merge_frvp_config,
    overlap_ratio,
    validate_frvp_config,
)

# =============================================================================
# Helpers
# =============================================================================


def scenario_bars() -> list[Bar]:
    """An up bar over 9-12 and a down bar over 8-11."""
    return [
        Bar(time=0, open=10, high=12, low=9, close=11, volume=100),
        Bar(time=60, open=11, high=11, low=8, close=9, volume=200),
    ]


def sample_bars(count: int) -> list[Bar]:
    bars = []
    for i in range(count):
        base = 100 + (i % 5)
        bars.append(
            Bar(time=i * 60, open=base, high=base + 2, low=base - 2, close=base + 1, volume=10 + i)
        )
    return bars


def rows_with_volumes(volumes: list[float]) -> list[ProfileRow]:
    return [
        ProfileRow(index=i, price_low=i, price_high=i + 1, up_volume=v, total_volume=v)
        for i, v in enumerate(volumes)
    ]


def number_config(rows: int, **kwargs) -> FRVPConfig:
    return FRVPConfig(rows_layout=RowsLayout.NUMBER, row_size=rows, **kwargs)


# =============================================================================
# Rows
# =============================================================================


class TestRows:
    """Tests for price row construction."""

    def test_number_layout(self) -> None:
        """Number layout makes row_size contiguous rows."""
        calculator = FRVPCalculator(number_config(24))
        rows = calculator.create_price_level_rows(100.0, 124.0)
        assert len(rows) == 24
        assert rows[0].price_low == 100.0
        assert rows[-1].price_high == 124.0
        for lower, upper in zip(rows, rows[1:]):
            assert lower.price_high == pytest.approx(upper.price_low)

    def test_tick_layout(self) -> None:
        """Tick layout makes ceil(range / row_size) rows."""
        calculator = FRVPCalculator(FRVPConfig(rows_layout=RowsLayout.TICK, row_size=3))
        rows = calculator.create_price_level_rows(100.0, 110.0)
        assert len(rows) == 4
        # last row is clipped to the high
        assert rows[-1].price_high == 110.0

    def test_percentage_layout(self) -> None:
        """Percentage layout makes 100 / row_size rows."""
        calculator = FRVPCalculator(FRVPConfig(rows_layout=RowsLayout.PERCENTAGE, row_size=25))
        assert len(calculator.create_price_level_rows(100.0, 110.0)) == 4

    def test_zero_range_tick_is_one_row(self) -> None:
        """A zero-range profile has one row."""
        calculator = FRVPCalculator(FRVPConfig(rows_layout=RowsLayout.TICK, row_size=0.5))
        assert len(calculator.create_price_level_rows(100.0, 100.0)) == 1

    def test_overlap_ratio(self) -> None:
        """Overlap is the share of the bar range inside the row."""
        assert overlap_ratio(9, 12, 8, 10) == pytest.approx(1 / 3)
        assert overlap_ratio(9, 12, 12, 14) == 0.0
        assert overlap_ratio(10, 10, 8, 12) == 0.0


# =============================================================================
# Distribution, POC and Value Area
# =============================================================================


class TestDistribution:
    """Tests for proportional volume distribution."""

    def test_two_bar_scenario(self) -> None:
        """Up and down volume split by overlap with rows [8, 10] and [10, 12]."""
        profile = FRVPCalculator(number_config(2)).calculate_profile(scenario_bars())
        low, high = profile.rows

        assert (low.price_low, low.price_high, high.price_high) == (8, 10, 12)
        assert low.up_volume == pytest.approx(100 / 3)
        assert low.down_volume == pytest.approx(400 / 3)
        assert high.up_volume == pytest.approx(200 / 3)
        assert high.down_volume == pytest.approx(200 / 3)
        assert profile.poc is low
        # Adding row 1 (133.3) to 166.7 would pass the 210 target
        assert profile.value_area_rows == frozenset({0})
        assert profile.vah is low
        assert profile.val is low

    def test_volume_conserved(self) -> None:
        """Row volumes add up to the bar volumes."""
        bars = sample_bars(37)
        profile = FRVPCalculator(number_config(17)).calculate_profile(bars)
        assert profile.total_volume == pytest.approx(sum(b.volume for b in bars))
        assert profile.total_delta == pytest.approx(
            sum(row.up_volume - row.down_volume for row in profile.rows)
        )

    def test_zero_range_bars_skipped(self) -> None:
        """Zero-range bars add no volume."""
        bars = scenario_bars() + [Bar(time=120, open=10, high=10, low=10, close=10, volume=999)]
        profile = FRVPCalculator(number_config(2)).calculate_profile(bars)
        assert profile.total_volume == pytest.approx(300)
        assert profile.total_bars == 3

    def test_empty_bars(self) -> None:
        """A profile needs at least one bar."""
        with pytest.raises(EmptyInputError):
            FRVPCalculator().calculate_profile([])


class TestPOC:
    def test_highest_volume(self) -> None:
        """POC is the row with the most volume."""
        rows = rows_with_volumes([5, 20, 10])
        assert FRVPCalculator().calculate_poc(rows).index == 1

    def test_tie_goes_to_lowest_row(self) -> None:
        """Equal volumes resolve to the lowest row."""
        rows = rows_with_volumes([10, 10, 3])
        assert FRVPCalculator().calculate_poc(rows).index == 0

    def test_no_rows(self) -> None:
        """POC needs at least one row."""
        with pytest.raises(EmptyInputError):
            FRVPCalculator().calculate_poc([])


class TestValueArea:
    """Tests for value area expansion around the POC."""

    def value_area(self, volumes: list[float], pct: float):
        calculator = FRVPCalculator()
        rows = rows_with_volumes(volumes)
        return calculator.calculate_value_area(rows, calculator.calculate_poc(rows), pct)

    def test_takes_larger_neighbour(self) -> None:
        """Expansion takes the neighbour with more volume."""
        va = self.value_area([10, 20, 50, 15, 5], 70)
        assert va.rows == frozenset({1, 2})
        assert va.accumulated_volume == 70
        assert va.target_volume == 70

    def test_equal_distance_tie_goes_above(self) -> None:
        """Equal volume at equal distance takes the lower index."""
        va = self.value_area([10, 50, 10], 90)
        # Lower index is taken first, the other side would pass the target
        assert va.rows == frozenset({0, 1})

    def test_tie_goes_to_closer_side(self) -> None:
        """Equal volume takes the neighbour closer to the POC."""
        va = self.value_area([10, 30, 50, 10], 90)
        assert va.rows == frozenset({1, 2, 3})
        assert va.val.index == 1
        assert va.vah.index == 3

    def test_never_overshoots(self) -> None:
        """A row that would pass the target ends the expansion."""
        va = self.value_area([10, 50, 10], 80)
        assert va.rows == frozenset({1})
        assert va.accumulated_volume <= va.target_volume

    def test_full_value_area(self) -> None:
        """100% takes every row."""
        va = self.value_area([1, 2, 3, 4], 100)
        assert va.rows == frozenset({0, 1, 2, 3})

    def test_zero_volume(self) -> None:
        """No volume gives a value area of the POC alone."""
        va = self.value_area([0, 0, 0], 70)
        assert va.rows == frozenset({0})
        assert va.vah is va.val
        assert va.accumulated_volume == 0.0

    def test_zero_percent(self) -> None:
        """0% gives a value area of the POC alone."""
        va = self.value_area([10, 20, 30], 0)
        assert va.rows == frozenset({2})


# =============================================================================
# Developing levels
# =============================================================================


class TestDeveloping:
    """Tests for developing POC / value area."""

    developing_config = FRVPConfig.from_dict(
        {"rowSize": 10, "indicators": {"developingPOC": {"enabled": True}}}
    )

    def test_disabled_by_default(self) -> None:
        """Developing levels are off unless requested."""
        profile = FRVPCalculator(number_config(10)).calculate_profile(sample_bars(20))
        assert profile.developing is None

    def test_sample_count_capped(self) -> None:
        """Long inputs are sampled with step ceil(n / 50), so 120 bars give 40."""
        bars = sample_bars(120)
        profile = FRVPCalculator(self.developing_config).calculate_profile(bars)
        assert len(profile.developing) == 40
        assert len(profile.developing) <= MAX_DEVELOPING_SAMPLES
        assert profile.developing[-1].timestamp == bars[-1].time
        assert profile.developing[-1].poc == profile.poc.price_level

    def test_every_prefix_when_short(self) -> None:
        """Fewer than 50 bars samples every prefix."""
        bars = sample_bars(30)
        profile = FRVPCalculator(self.developing_config).calculate_profile(bars)
        assert [d.timestamp for d in profile.developing] == [b.time for b in bars]
        for point in profile.developing:
            assert point.val <= point.poc <= point.vah


# =============================================================================
# Configuration
# =============================================================================


class TestConfig:
    """Tests for FRVP settings handling."""

    def test_clamps_number_row_size(self) -> None:
        """Number layout row_size becomes an integer of at least 1."""
        assert number_config(0).validate().row_size == 1
        assert number_config(12.7).validate().row_size == 12
        assert number_config("abc").validate().row_size == 200

    def test_clamps_tick_row_size(self) -> None:
        """Tick row_size stays positive."""
        config = FRVPConfig(rows_layout=RowsLayout.TICK, row_size=-5)
        assert validate_frvp_config(config).row_size == 1.0
        config = FRVPConfig(rows_layout=RowsLayout.TICK, row_size=0.25)
        assert config.validate().row_size == 0.25

    def test_non_finite_row_size_uses_default(self) -> None:
        """Infinite or NaN row_size falls back to the default of 200."""
        assert number_config(float("inf")).validate().row_size == 200
        assert number_config(float("-inf")).validate().row_size == 200
        assert number_config(float("nan")).validate().row_size == 200
        config = FRVPConfig(rows_layout=RowsLayout.TICK, row_size=float("inf"))
        assert config.validate().row_size == 200

    def test_huge_row_size_capped(self) -> None:
        """Number layout row_size is capped at MAX_ROWS."""
        assert number_config(1e9).validate().row_size == MAX_ROWS
        calculator = FRVPCalculator(number_config(1e9))
        assert len(calculator.create_price_level_rows(100.0, 110.0)) == MAX_ROWS

    def test_tiny_tick_size_capped(self) -> None:
        """A tiny Tick row height still yields at most MAX_ROWS rows."""
        calculator = FRVPCalculator(FRVPConfig(rows_layout=RowsLayout.TICK, row_size=1e-300))
        rows = calculator.create_price_level_rows(100.0, 110.0)
        assert len(rows) == MAX_ROWS
        assert rows[-1].price_high == 110.0

    def test_clamps_percentages(self) -> None:
        """Percent settings are clamped into 0-100."""
        assert FRVPConfig(value_area_volume=150).validate().value_area_volume == 100
        assert FRVPConfig(value_area_volume=-1).validate().value_area_volume == 0
        config = FRVPConfig.from_dict({"volumeProfile": {"width": 250}})
        assert config.validate().volume_profile.width == 100

    def test_validate_returns_copy(self) -> None:
        """validate() leaves the original config untouched."""
        config = number_config(0)
        config.validate()
        assert config.row_size == 0

    def test_merge_keeps_siblings(self) -> None:
        """A nested override keeps the other nested defaults."""
        merged = merge_frvp_config(
            DEFAULT_FRVP_CONFIG, {"indicators": {"developingPOC": {"enabled": True}}}
        )
        assert merged.indicators.developing_poc.enabled
        assert merged.indicators.developing_poc.color == "#666666"
        assert merged.indicators.vah.enabled
        assert merged.developing_enabled
        assert not DEFAULT_FRVP_CONFIG.developing_enabled

    def test_merge_without_override(self) -> None:
        """No override returns an equal copy."""
        merged = merge_frvp_config(DEFAULT_FRVP_CONFIG, None)
        assert merged == DEFAULT_FRVP_CONFIG
        assert merged is not DEFAULT_FRVP_CONFIG

    def test_from_dict_case_insensitive_layout(self) -> None:
        """Layout names are matched case-insensitively."""
        assert FRVPConfig.from_dict({"rowsLayout": "tick"}).rows_layout is RowsLayout.TICK

    def test_from_dict_unknown_layout(self) -> None:
        """An unknown layout name is rejected."""
        with pytest.raises(InvalidConfigurationError):
            FRVPConfig.from_dict({"rowsLayout": "Ticks"})

    def test_to_dict_keys(self) -> None:
        """to_dict uses the camelCase settings keys."""
        data = DEFAULT_FRVP_CONFIG.to_dict()
        assert data["rowsLayout"] == "Number"
        assert data["rowSize"] == 200
        assert data["valueAreaVolume"] == 70
        assert set(data["indicators"]) == {"VAH", "VAL", "POC", "developingPOC", "developingVA"}

    def test_presets(self) -> None:
        """Presets adjust the documented settings."""
        presets = get_frvp_presets()
        assert set(presets) == {"default", "compact", "detailed", "minimal"}
        assert presets["compact"].row_size == 100
        assert presets["compact"].volume_profile.width == 20
        assert presets["detailed"].volume_profile.show_values
        assert not presets["minimal"].volume_profile.enabled
        assert presets["minimal"].indicators.poc.line_style == "solid"
        assert presets["minimal"].indicators.poc.width == 3


# =============================================================================
# Entry point and helpers
# =============================================================================


class TestCalculateFRVP:
    """Tests for the fixed-range entry point."""

    def test_window_is_inclusive(self) -> None:
        """Bars at start_time and end_time are included."""
        bars = sample_bars(10)
        profile = calculate_frvp(bars, start_time=bars[2].time, end_time=bars[5].time,
                                 config=number_config(5))
        assert profile.total_bars == 4

    def test_accepts_dict_config(self) -> None:
        """A partial settings dict is merged onto the defaults."""
        profile = calculate_frvp(scenario_bars(), config={"rowSize": 2})
        assert profile.row_count == 2
        assert profile.poc.index == 0

    def test_market_hours_only(self) -> None:
        """Bars outside 09:15-15:30 IST are dropped."""
        def at(hour: int, minute: int) -> int:
            return int(datetime(2024, 1, 15, hour, minute, tzinfo=IST).timestamp())

        bars = [
            Bar(time=at(9, 0), open=10, high=12, low=9, close=11, volume=100),
            Bar(time=at(9, 30), open=11, high=11, low=8, close=9, volume=200),
        ]
        profile = calculate_frvp(bars, config=number_config(3), market_hours_only=True)
        assert profile.total_bars == 1
        assert profile.profile_low == 8

    def test_empty_window(self) -> None:
        """A window with no bars raises EmptyInputError."""
        with pytest.raises(EmptyInputError):
            calculate_frvp(sample_bars(5), start_time=10_000)

    def test_to_dict(self) -> None:
        """Profile serializes rows by index and metadata."""
        data = calculate_frvp(scenario_bars(), config=number_config(2)).to_dict()
        assert data["poc"] == 0
        assert data["value_area_rows"] == [0]
        assert data["developing"] is None
        assert data["metadata"]["total_volume"] == pytest.approx(300)


class TestFormattedData:
    def test_bar_widths(self) -> None:
        """Bar width is volume relative to the POC, scaled to the box width."""
        calculator = FRVPCalculator(number_config(2))
        profile = calculator.calculate_profile(scenario_bars())
        low, high = calculator.get_formatted_data(profile)

        assert low.is_poc and low.is_vah and low.is_val and low.is_in_value_area
        assert low.bar_width == pytest.approx(30)
        assert high.bar_width == pytest.approx(24)
        assert not high.is_in_value_area
        assert high.placement == "Left"


class TestProfileHelpers:
    """Tests for profile analysis helpers."""

    def profile(self):
        return calculate_frvp(sample_bars(40), config=number_config(10))

    def test_row_at_price(self) -> None:
        """A price maps to the row containing it."""
        profile = self.profile()
        row = get_row_at_price(profile, profile.poc.price_level)
        assert row is profile.poc
        assert get_row_at_price(profile, profile.profile_high + 1) is None

    def test_price_in_value_area(self) -> None:
        """Value area membership uses the VAL low and VAH high edges."""
        profile = calculate_frvp(scenario_bars(), config=number_config(2))
        assert is_price_in_value_area(profile, 9.0)
        assert is_price_in_value_area(profile, 10.0)
        assert not is_price_in_value_area(profile, 11.0)

    def test_hvn_lvn(self) -> None:
        """HVNs start at the busiest row and LVNs at the quietest."""
        profile = self.profile()
        hvn = get_hvn_rows(profile)
        lvn = get_lvn_rows(profile)
        volumes = [row.total_volume for row in profile.rows]
        assert hvn[0].total_volume == max(volumes)
        assert lvn[0].total_volume == min(volumes)
        assert len(lvn) == 2
        assert lvn[0].total_volume <= lvn[1].total_volume

    def test_delta_extremes(self) -> None:
        """Delta extremes are ordered most extreme first."""
        highest, lowest = get_delta_extremes(self.profile(), top_n=2)
        assert highest[0].delta >= highest[1].delta
        assert lowest[0].delta <= lowest[1].delta

    def test_stats(self) -> None:
        """Stats report the key levels and totals."""
        profile = self.profile()
        stats = get_profile_stats(profile)
        assert stats["poc"] == profile.poc.price_level
        assert stats["row_count"] == 10
        assert stats["total_bars"] == 40
        assert stats["total_volume"] == pytest.approx(sum(b.volume for b in sample_bars(40)))
