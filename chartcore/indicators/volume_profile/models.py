"""
Volume Profile Data Models.

Core data structures for Fixed Range Volume Profile analysis:
- ProfileRow: Volume aggregated in one price bucket
- ValueArea: Rows holding the value-area share of volume around the POC
- DevelopingPoint: POC/VAH/VAL snapshot over a prefix of the bars
- Profile: Complete profile for a bar range
- FormattedRow: A row annotated for rendering
"""

from dataclasses import dataclass


@dataclass
class ProfileRow:
    """
    Volume data in a single price bucket.

    Tracks total volume and breakdown by bar direction (up/down).
    Delta = up_volume - down_volume indicates net buying pressure.
    """

    index: int
    price_low: float
    price_high: float
    up_volume: float = 0.0
    down_volume: float = 0.0
    total_volume: float = 0.0

    @property
    def price_level(self) -> float:
        """Mid-price of the row."""
        return (self.price_low + self.price_high) / 2

    @property
    def delta(self) -> float:
        """Net buying pressure (positive = more up volume)."""
        return self.up_volume - self.down_volume

    @property
    def delta_pct(self) -> float:
        """Delta as percentage of total volume (-100 to +100)."""
        if self.total_volume == 0:
            return 0.0
        return (self.delta / self.total_volume) * 100

    def add_volume(self, volume: float, is_up: bool) -> None:
        """Add a share of a bar's volume to this row."""
        if is_up:
            self.up_volume += volume
        else:
            self.down_volume += volume
        self.total_volume += volume

    def contains(self, price: float) -> bool:
        return self.price_low <= price <= self.price_high

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "price_low": self.price_low,
            "price_high": self.price_high,
            "price_level": self.price_level,
            "up_volume": self.up_volume,
            "down_volume": self.down_volume,
            "total_volume": self.total_volume,
            "delta": self.delta,
        }


@dataclass(frozen=True)
class ValueArea:
    """Result of the value-area expansion around the POC."""

    vah: ProfileRow
    val: ProfileRow
    rows: frozenset[int]
    accumulated_volume: float
    target_volume: float


@dataclass(frozen=True)
class DevelopingPoint:
    """POC/VAH/VAL prices computed over the bars up to timestamp."""

    timestamp: int
    poc: float
    vah: float
    val: float


@dataclass
class Profile:
    """
    Complete Fixed Range Volume Profile.

    Rows are ordered by ascending price. vah/val are the highest and lowest
    rows of the value area.
    """

    rows: list[ProfileRow]
    poc: ProfileRow
    vah: ProfileRow
    val: ProfileRow
    value_area_rows: frozenset[int]
    profile_high: float
    profile_low: float
    total_bars: int
    value_area_volume: float = 0.0
    developing: list[DevelopingPoint] | None = None

    @property
    def total_volume(self) -> float:
        """Total volume across all rows."""
        return sum(row.total_volume for row in self.rows)

    @property
    def total_delta(self) -> float:
        """Total delta across all rows."""
        return sum(row.delta for row in self.rows)

    @property
    def price_range(self) -> float:
        return self.profile_high - self.profile_low

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "rows": [row.to_dict() for row in self.rows],
            "poc": self.poc.index,
            "vah": self.vah.index,
            "val": self.val.index,
            "value_area_rows": sorted(self.value_area_rows),
            "profile_high": self.profile_high,
            "profile_low": self.profile_low,
            "developing": (
                [
                    {"timestamp": d.timestamp, "poc": d.poc, "vah": d.vah, "val": d.val}
                    for d in self.developing
                ]
                if self.developing is not None
                else None
            ),
            "metadata": {
                "total_volume": self.total_volume,
                "total_bars": self.total_bars,
                "price_range": self.price_range,
                "row_count": self.row_count,
            },
        }


@dataclass(frozen=True)
class FormattedRow:
    """A profile row annotated for rendering."""

    row: ProfileRow
    bar_width: float  # Percent of the histogram box width
    is_poc: bool = False
    is_vah: bool = False
    is_val: bool = False
    is_in_value_area: bool = False
    placement: str = "Left"
