"""
Bar Data Storage.

Stores and loads OHLCV bars in two formats:
- Parquet: Primary format (~10x smaller than CSV, fast columnar reads)
- CSV: Plain text with a time,open,high,low,close,volume header

Loaded bars are sorted by time with duplicate timestamps dropped, so every
engine receives a strictly ascending series.

Usage:
    storage = BarStorage()

    # Save bars
    storage.save_bars(bars, Path("data/bars/NIFTY_1m_20260120.parquet"))

    # Load bars
    bars = storage.load_bars(Path("data/bars/NIFTY_1m_20260120.parquet"))
"""

import csv
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from chartcore.core.errors import EmptyInputError
from chartcore.core.models import Bar

logger = logging.getLogger(__name__)

FIELDNAMES = ["time", "open", "high", "low", "close", "volume"]


def parse_time(value) -> int:
    """
    Parse a bar time into Unix seconds.

    Accepts epoch seconds (int, float or numeric string), epoch milliseconds,
    datetimes, and ISO-8601 strings (naive values are taken as UTC, a trailing
    Z means UTC).
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        seconds = int(value)
        return seconds // 1000 if seconds > 10**11 else seconds
    else:
        text = str(value).strip()
        try:
            return parse_time(float(text))
        except ValueError:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def normalize_bars(bars: Iterable[Bar]) -> list[Bar]:
    """Sort bars by time and drop duplicate timestamps (first occurrence wins)."""
    ordered = sorted(bars, key=lambda b: b.time)
    result: list[Bar] = []
    dropped = 0
    for bar in ordered:
        if result and result[-1].time == bar.time:
            dropped += 1
            continue
        result.append(bar)

    if dropped:
        logger.warning(f"Dropped {dropped} bars with duplicate timestamps")
    return result


class BarStorage:
    """
    Stores and loads bar data in Parquet or CSV format.

    The format is chosen from the file extension (.parquet or .csv).
    """

    def __init__(self, verbose: bool = False):
        """
        Initialize the storage.

        Args:
            verbose: Print progress information
        """
        self.verbose = verbose

    def _log(self, message: str) -> None:
        """Log message, echoing to stdout in verbose mode."""
        if self.verbose:
            print(message)
        logger.info(message)

    def save_bars(
        self,
        bars: Iterable[Bar],
        filepath: Path,
        format: str = "auto",
    ) -> Path:
        """
        Save bars to file.

        Args:
            bars: Bars to save
            filepath: Output file path
            format: "parquet", "csv", or "auto" (based on extension, parquet otherwise)

        Returns:
            Path to saved file
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        if format == "auto":
            if filepath.suffix == ".csv":
                format = "csv"
            else:
                format = "parquet"
                if filepath.suffix != ".parquet":
                    filepath = filepath.with_suffix(".parquet")

        bars = list(bars)
        if format == "parquet":
            return self._save_parquet(bars, filepath)
        return self._save_csv(bars, filepath)

    def _save_parquet(self, bars: list[Bar], filepath: Path) -> Path:
        """Save bars to Parquet format."""
        self._log(f"Saving {len(bars)} bars to Parquet: {filepath}")

        table = pa.table(
            {
                "time": pa.array([b.time for b in bars], type=pa.int64()),
                "open": pa.array([b.open for b in bars], type=pa.float64()),
                "high": pa.array([b.high for b in bars], type=pa.float64()),
                "low": pa.array([b.low for b in bars], type=pa.float64()),
                "close": pa.array([b.close for b in bars], type=pa.float64()),
                "volume": pa.array([b.volume for b in bars], type=pa.float64()),
            }
        )
        pq.write_table(table, filepath, compression="snappy")

        size_kb = filepath.stat().st_size / 1024
        self._log(f"  Saved {len(bars)} bars ({size_kb:.1f} KB)")
        return filepath

    def _save_csv(self, bars: list[Bar], filepath: Path) -> Path:
        """Save bars to CSV format."""
        self._log(f"Saving {len(bars)} bars to CSV: {filepath}")

        with filepath.open("w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            for bar in bars:
                writer.writerow(bar.to_dict())

        size_kb = filepath.stat().st_size / 1024
        self._log(f"  Saved {len(bars)} bars ({size_kb:.1f} KB)")
        return filepath

    def load_bars(
        self,
        filepath: Path,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> list[Bar]:
        """
        Load bars from file.

        Args:
            filepath: Path to a .parquet or .csv bar file
            start_time: Optional inclusive start (Unix seconds)
            end_time: Optional inclusive end (Unix seconds)

        Returns:
            Bars sorted by time, duplicates removed

        Raises:
            FileNotFoundError: If the file does not exist
            EmptyInputError: If the file holds no bars in range
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        if filepath.suffix == ".parquet":
            records = self._read_parquet(filepath)
        else:
            records = self._read_csv(filepath)

        bars = []
        for record in records:
            if "time" not in record and "timestamp" in record:
                record["time"] = record["timestamp"]
            record["time"] = parse_time(record["time"])
            if start_time is not None and record["time"] < start_time:
                continue
            if end_time is not None and record["time"] > end_time:
                continue
            bars.append(Bar.from_dict(record))

        bars = normalize_bars(bars)
        if not bars:
            raise EmptyInputError(f"No bars found in {filepath}")

        self._log(f"  Loaded {len(bars)} bars from {filepath}")
        return bars

    def _read_parquet(self, filepath: Path) -> list[dict]:
        """Read Parquet rows as dictionaries."""
        return pq.read_table(filepath).to_pylist()

    def _read_csv(self, filepath: Path) -> list[dict]:
        """Read CSV rows as dictionaries."""
        with filepath.open("r", newline="") as f:
            return list(csv.DictReader(f))

    def get_file_info(self, filepath: Path) -> dict:
        """
        Get information about a bar data file.

        Returns:
            Dictionary with path, size and format (plus row count for Parquet)
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        info = {
            "path": str(filepath),
            "size_bytes": filepath.stat().st_size,
            "format": filepath.suffix.lstrip("."),
        }
        if filepath.suffix == ".parquet":
            info["num_rows"] = pq.ParquetFile(filepath).metadata.num_rows
        return info
