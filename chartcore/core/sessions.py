"""
Exchange calendar helpers.

The exchange runs on Indian Standard Time (fixed UTC+05:30, no DST) with
the cash session open from 09:15 to 15:30. CVD anchor periods and the
market-hours filter are all computed against that local wall clock.
"""

from collections.abc import Iterable
from datetime import datetime, time, timedelta, timezone
from enum import Enum

from .errors import InvalidConfigurationError
from .models import Bar

IST = timezone(timedelta(hours=5, minutes=30), "IST")

MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)

# Second 4H session starts at 13:15 (market open + 4h)
AFTERNOON_SESSION_HOUR = 13


class AnchorPeriod(Enum):
    """Recurring window after which CVD resets to zero."""

    DAY = "1D"
    HOUR = "1H"
    FOUR_HOURS = "4H"
    WEEK = "1W"

    @classmethod
    def parse(cls, value: "AnchorPeriod | str") -> "AnchorPeriod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError as e:
            raise InvalidConfigurationError(f"Unknown anchor period: {value!r}") from e


def to_ist(timestamp: int) -> datetime:
    """Unix seconds to an aware IST datetime."""
    return datetime.fromtimestamp(timestamp, IST)


def format_time_ist(timestamp: int) -> str:
    """Format a Unix timestamp as IST wall clock HH:MM."""
    return to_ist(timestamp).strftime("%H:%M")


def anchor_period_start(timestamp: int, anchor_period: AnchorPeriod | str) -> int:
    """
    Start of the anchor period containing timestamp, in Unix seconds.

    - 1D: 09:15 IST of the same local date
    - 1H: top of the local hour
    - 4H: 09:15 before 13:00 local, 13:15 from 13:00 on
    - 1W: Monday 09:15 IST of the local week

    Args:
        timestamp: Candle time in Unix seconds
        anchor_period: AnchorPeriod member or its string value

    Returns:
        Anchor start in Unix seconds
    """
    period = AnchorPeriod.parse(anchor_period)
    local = to_ist(timestamp)

    if period is AnchorPeriod.HOUR:
        start = local.replace(minute=0, second=0, microsecond=0)
    elif period is AnchorPeriod.FOUR_HOURS:
        hour = AFTERNOON_SESSION_HOUR if local.hour >= AFTERNOON_SESSION_HOUR else MARKET_OPEN.hour
        start = local.replace(hour=hour, minute=MARKET_OPEN.minute, second=0, microsecond=0)
    elif period is AnchorPeriod.WEEK:
        monday = local.date() - timedelta(days=local.weekday())
        start = datetime.combine(monday, MARKET_OPEN, tzinfo=IST)
    else:
        start = local.replace(
            hour=MARKET_OPEN.hour, minute=MARKET_OPEN.minute, second=0, microsecond=0
        )

    return int(start.timestamp())


def is_market_hours(timestamp: int) -> bool:
    """True if the IST wall clock falls within 09:15-15:30 inclusive."""
    local = to_ist(timestamp).time().replace(second=0, microsecond=0)
    return MARKET_OPEN <= local <= MARKET_CLOSE


def filter_market_hours(bars: Iterable[Bar]) -> list[Bar]:
    """Keep only the bars that open during the cash session."""
    return [bar for bar in bars if is_market_hours(bar.time)]
