"""
Historical bar files for offline indicator runs.
"""

from .storage import BarStorage, normalize_bars, parse_time

__all__ = [
    "BarStorage",
    "normalize_bars",
    "parse_time",
]
