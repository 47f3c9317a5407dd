"""
Indicator engine error types.

Engines only raise on structurally impossible input (no bars for a
profile, no rows for a POC). Short series, zero volume and zero-width
price ranges degrade to empty or neutral output instead.
"""


class IndicatorError(Exception):
    """Base class for all indicator engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EmptyInputError(IndicatorError, ValueError):
    """A computation that needs at least one bar or row received none."""


class InsufficientDataError(IndicatorError):
    """
    Fewer observations than the smoothing period.

    Smoothing functions return an empty series in this case rather than
    raising; the type exists so callers can signal it themselves.
    """


class InvalidConfigurationError(IndicatorError, ValueError):
    """A configuration value that cannot be clamped into a valid range."""
