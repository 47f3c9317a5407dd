"""
Fixed Range Volume Profile configuration.

Default settings, validation (numeric values are clamped into range rather
than rejected), deep merging of partial overrides and named presets.

Dictionaries use the chart settings' camelCase keys, e.g.::

    {"rowsLayout": "Tick", "rowSize": 0.5, "valueAreaVolume": 68,
     "indicators": {"developingPOC": {"enabled": True}}}
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from chartcore.core.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ROW_SIZE = 200
DEFAULT_VALUE_AREA_VOLUME = 70
DEFAULT_WIDTH = 30
DEFAULT_COLOR_OPACITY = 80
DEFAULT_INDICATOR_OPACITY = 50

# Upper bound on profile rows for any layout
MAX_ROWS = 2000


class RowsLayout(Enum):
    """How row_size is interpreted."""

    NUMBER = "Number"  # row_size = number of rows
    TICK = "Tick"  # row_size = price units per row
    PERCENTAGE = "Percentage"  # row_size = percent of the range per row


class VolumeDisplay(Enum):
    """Which volume the histogram shows."""

    TOTAL = "Total"
    UP_DOWN = "Up/Down"
    DELTA = "Delta"


class Placement(Enum):
    LEFT = "Left"
    RIGHT = "Right"


def _parse_enum(enum_cls: type[Enum], value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if str(member.value).lower() == str(value).lower():
            return member
    raise InvalidConfigurationError(f"Unknown {enum_cls.__name__} value: {value!r}")


def _clamp(value: Any, low: float, high: float, default: float, name: str) -> float:
    """Clamp value into [low, high]; unparseable values fall back to default."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"{name}={value!r} is not a number, using {default}")
        return default
    if not math.isfinite(number):
        logger.debug(f"{name}={number} is not finite, using {default}")
        return default
    clamped = max(low, min(high, number))
    if clamped != number:
        logger.debug(f"{name}={number} clamped to {clamped}")
    return clamped


@dataclass
class ColorSetting:
    color: str
    opacity: float = DEFAULT_COLOR_OPACITY


@dataclass
class VolumeProfileStyle:
    """Histogram appearance."""

    enabled: bool = True
    show_values: bool = False
    values_color: str = "#808080"
    width: float = DEFAULT_WIDTH  # % of box width (0-100)
    placement: Placement = Placement.LEFT


@dataclass
class LineStyle:
    """A horizontal level line (VAH, VAL, POC)."""

    enabled: bool = True
    color: str = "#ffc107"
    line_style: str = "solid"  # solid, dashed, dotted
    width: int = 2


@dataclass
class DevelopingStyle:
    """A developing POC / VA line."""

    enabled: bool = False
    color: str = "#666666"
    opacity: float = DEFAULT_INDICATOR_OPACITY


def _default_colors() -> dict[str, ColorSetting]:
    return {
        "upVolume": ColorSetting("#26a69a", 80),
        "downVolume": ColorSetting("#ef5350", 80),
        "valueAreaUp": ColorSetting("#00bcd4", 40),
        "valueAreaDown": ColorSetting("#e91e63", 40),
    }


@dataclass
class IndicatorLines:
    vah: LineStyle = field(default_factory=LineStyle)
    val: LineStyle = field(default_factory=LineStyle)
    poc: LineStyle = field(
        default_factory=lambda: LineStyle(color="#000000", line_style="dotted")
    )
    developing_poc: DevelopingStyle = field(default_factory=DevelopingStyle)
    developing_va: DevelopingStyle = field(
        default_factory=lambda: DevelopingStyle(color="#999999", opacity=30)
    )


@dataclass
class HistogramBox:
    background_color: str = "#ffffff"
    opacity: float = 10


@dataclass
class FRVPConfig:
    """Complete FRVP configuration."""

    rows_layout: RowsLayout = RowsLayout.NUMBER
    row_size: float = DEFAULT_ROW_SIZE
    volume: VolumeDisplay = VolumeDisplay.UP_DOWN
    value_area_volume: float = DEFAULT_VALUE_AREA_VOLUME  # Percent of total volume
    extend_right: bool = False
    volume_profile: VolumeProfileStyle = field(default_factory=VolumeProfileStyle)
    colors: dict[str, ColorSetting] = field(default_factory=_default_colors)
    indicators: IndicatorLines = field(default_factory=IndicatorLines)
    histogram_box: HistogramBox = field(default_factory=HistogramBox)

    @property
    def developing_enabled(self) -> bool:
        """True if either developing POC or developing VA is requested."""
        return self.indicators.developing_poc.enabled or self.indicators.developing_va.enabled

    def without_developing(self) -> "FRVPConfig":
        """Copy of this config with developing indicators switched off."""
        clone = copy.deepcopy(self)
        clone.indicators.developing_poc.enabled = False
        clone.indicators.developing_va.enabled = False
        return clone

    def validate(self) -> "FRVPConfig":
        """
        Return a validated copy with every numeric field clamped into range.

        - row_size: integer 1..MAX_ROWS for Number layout, positive for
          Tick/Percentage; non-finite values fall back to the default
        - value_area_volume, width, opacities: 0-100
        """
        v = copy.deepcopy(self)

        if v.rows_layout is RowsLayout.NUMBER:
            v.row_size = int(_clamp(v.row_size, 1, MAX_ROWS, DEFAULT_ROW_SIZE, "rowSize"))
        else:
            size = _clamp(v.row_size, 0, float("inf"), DEFAULT_ROW_SIZE, "rowSize")
            v.row_size = size if size > 0 else 1.0

        v.value_area_volume = _clamp(
            v.value_area_volume, 0, 100, DEFAULT_VALUE_AREA_VOLUME, "valueAreaVolume"
        )
        v.volume_profile.width = _clamp(
            v.volume_profile.width, 0, 100, DEFAULT_WIDTH, "volumeProfile.width"
        )

        for name, color in v.colors.items():
            color.opacity = _clamp(
                color.opacity, 0, 100, DEFAULT_COLOR_OPACITY, f"colors.{name}.opacity"
            )
        for developing in (v.indicators.developing_poc, v.indicators.developing_va):
            developing.opacity = _clamp(
                developing.opacity, 0, 100, DEFAULT_INDICATOR_OPACITY, "indicators.opacity"
            )
        v.histogram_box.opacity = _clamp(
            v.histogram_box.opacity, 0, 100, 10, "histogramBox.opacity"
        )

        return v

    def to_dict(self) -> dict:
        """Convert to the camelCase settings dictionary."""

        def line(style: LineStyle) -> dict:
            return {
                "enabled": style.enabled,
                "color": style.color,
                "lineStyle": style.line_style,
                "width": style.width,
            }

        def developing(style: DevelopingStyle) -> dict:
            return {"enabled": style.enabled, "color": style.color, "opacity": style.opacity}

        return {
            "rowsLayout": self.rows_layout.value,
            "rowSize": self.row_size,
            "volume": self.volume.value,
            "valueAreaVolume": self.value_area_volume,
            "extendRight": self.extend_right,
            "volumeProfile": {
                "enabled": self.volume_profile.enabled,
                "showValues": self.volume_profile.show_values,
                "valuesColor": self.volume_profile.values_color,
                "width": self.volume_profile.width,
                "placement": self.volume_profile.placement.value,
            },
            "colors": {
                name: {"color": c.color, "opacity": c.opacity} for name, c in self.colors.items()
            },
            "indicators": {
                "VAH": line(self.indicators.vah),
                "VAL": line(self.indicators.val),
                "POC": line(self.indicators.poc),
                "developingPOC": developing(self.indicators.developing_poc),
                "developingVA": developing(self.indicators.developing_va),
            },
            "histogramBox": {
                "backgroundColor": self.histogram_box.background_color,
                "opacity": self.histogram_box.opacity,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FRVPConfig":
        """
        Create from a (possibly partial) camelCase settings dictionary.

        Missing keys take their defaults. Unknown enum names raise
        InvalidConfigurationError; numeric values are not clamped here
        (call validate()).
        """
        merged = _deep_merge(DEFAULT_FRVP_CONFIG_DICT, data)

        def line(d: dict) -> LineStyle:
            return LineStyle(
                enabled=bool(d.get("enabled", True)),
                color=d.get("color", "#ffc107"),
                line_style=d.get("lineStyle", "solid"),
                width=d.get("width", 2),
            )

        def developing(d: dict) -> DevelopingStyle:
            return DevelopingStyle(
                enabled=bool(d.get("enabled", False)),
                color=d.get("color", "#666666"),
                opacity=d.get("opacity", DEFAULT_INDICATOR_OPACITY),
            )

        vp = merged["volumeProfile"]
        ind = merged["indicators"]
        box = merged["histogramBox"]

        return cls(
            rows_layout=_parse_enum(RowsLayout, merged["rowsLayout"]),
            row_size=merged["rowSize"],
            volume=_parse_enum(VolumeDisplay, merged["volume"]),
            value_area_volume=merged["valueAreaVolume"],
            extend_right=bool(merged["extendRight"]),
            volume_profile=VolumeProfileStyle(
                enabled=bool(vp["enabled"]),
                show_values=bool(vp["showValues"]),
                values_color=vp["valuesColor"],
                width=vp["width"],
                placement=_parse_enum(Placement, vp["placement"]),
            ),
            colors={
                name: ColorSetting(
                    color=c.get("color", "#000000"),
                    opacity=c.get("opacity", DEFAULT_COLOR_OPACITY),
                )
                for name, c in merged["colors"].items()
            },
            indicators=IndicatorLines(
                vah=line(ind["VAH"]),
                val=line(ind["VAL"]),
                poc=line(ind["POC"]),
                developing_poc=developing(ind["developingPOC"]),
                developing_va=developing(ind["developingVA"]),
            ),
            histogram_box=HistogramBox(
                background_color=box["backgroundColor"],
                opacity=box["opacity"],
            ),
        )


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


DEFAULT_FRVP_CONFIG = FRVPConfig()
DEFAULT_FRVP_CONFIG_DICT = DEFAULT_FRVP_CONFIG.to_dict()


def merge_frvp_config(base: FRVPConfig, override: dict | None) -> FRVPConfig:
    """
    Deep-merge a partial settings dictionary onto a base config.

    Args:
        base: Base configuration (not modified)
        override: camelCase overrides; nested dicts merge key by key

    Returns:
        New FRVPConfig
    """
    if not override:
        return copy.deepcopy(base)
    return FRVPConfig.from_dict(_deep_merge(base.to_dict(), override))


def validate_frvp_config(config: FRVPConfig) -> FRVPConfig:
    """Return a validated copy of config (see FRVPConfig.validate)."""
    return config.validate()


def get_frvp_presets() -> dict[str, FRVPConfig]:
    """
    Named preset configurations.

    Returns:
        Mapping of preset name (default, compact, detailed, minimal) to config
    """
    return {
        "default": FRVPConfig(),
        "compact": merge_frvp_config(
            DEFAULT_FRVP_CONFIG, {"rowSize": 100, "volumeProfile": {"width": 20}}
        ),
        "detailed": merge_frvp_config(
            DEFAULT_FRVP_CONFIG,
            {"rowSize": 300, "volumeProfile": {"width": 40, "showValues": True}},
        ),
        "minimal": merge_frvp_config(
            DEFAULT_FRVP_CONFIG,
            {
                "volumeProfile": {"enabled": False},
                "indicators": {
                    "POC": {"lineStyle": "solid", "width": 3},
                    "developingPOC": {"enabled": False},
                    "developingVA": {"enabled": False},
                },
            },
        ),
    }
