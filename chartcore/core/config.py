"""
Indicator engine settings.

Centralizes the default indicator parameters used by the command line and
by callers that do not pass explicit arguments. Values can be overridden
from the environment (optionally through a .env file).
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path

from dotenv import load_dotenv

from .errors import InvalidConfigurationError

ENV_PREFIX = "CHARTCORE_"


@dataclass
class IndicatorSettings:
    """Default parameters for every indicator engine.

    Environment variables use the CHARTCORE_ prefix and the upper-cased
    field name, e.g. CHARTCORE_RSI_PERIOD=21.
    """

    # =========================================================
    # Oscillators
    # =========================================================

    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    cmf_length: int = 20

    # =========================================================
    # CVD
    # =========================================================

    # 1D, 1H, 4H or 1W
    cvd_anchor_period: str = "1D"

    # Target candle resolution in minutes
    timeframe_minutes: int = 5

    # =========================================================
    # Fixed Range Volume Profile
    # =========================================================

    # Number, Tick or Percentage
    frvp_rows_layout: str = "Number"
    frvp_row_size: float = 200
    frvp_value_area_volume: float = 70

    # =========================================================
    # Logging
    # =========================================================

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: str | Path | None = None) -> "IndicatorSettings":
        """
        Create settings from environment variables.

        Args:
            env_path: Optional path to a .env file (defaults to searching
                the working directory)

        Returns:
            IndicatorSettings with overrides applied

        Raises:
            InvalidConfigurationError: If a numeric variable does not parse
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        overrides: dict = {}
        for f in fields(cls):
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            try:
                if f.type in (int, "int"):
                    overrides[f.name] = int(raw)
                elif f.type in (float, "float"):
                    overrides[f.name] = float(raw)
                else:
                    overrides[f.name] = raw
            except ValueError as e:
                raise InvalidConfigurationError(
                    f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}"
                ) from e

        return cls(**overrides)


# Default settings instance
DEFAULT_SETTINGS = IndicatorSettings()
