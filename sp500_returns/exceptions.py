"""
exceptions.py
-------------
Error hierarchy for price loading, lookups and return calculations.

Lookups and horizon calculations never return silently empty results:
a month that is not a table row, or a holding period that runs past the
available data, raises one of the errors below.
"""

from typing import Any, Dict, Optional


class ReturnsError(Exception):
    """Base class for all errors raised by the package."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class DataSourceError(ReturnsError, RuntimeError):
    """The price provider or a local data file could not be read."""


class DataIntegrityError(ReturnsError, ValueError):
    """Loaded data violates the table invariants (gaps, inverted intervals)."""


class DateNotFoundError(ReturnsError, LookupError):
    """A requested month is not a row of the price table."""

    def __init__(self, date, **kwargs):
        super().__init__(f"No price row for {date}", **kwargs)
        self.date = date


class HorizonExceededError(ReturnsError, IndexError):
    """A holding period runs outside the available price history."""

    def __init__(self, message: str, requested_id: Optional[int] = None,
                 last_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.requested_id = requested_id
        self.last_id = last_id


class NoRecessionEndError(ReturnsError, LookupError):
    """No recession ends at or after the requested month."""

    def __init__(self, date, **kwargs):
        super().__init__(f"No recession end on or after {date}", **kwargs)
        self.date = date


class InvalidParameterError(ReturnsError, ValueError):
    """An investment parameter (amount, dividend, window) is out of range."""


class InvalidHorizonError(InvalidParameterError):
    """A holding period shorter than one month was requested."""

    def __init__(self, horizon, **kwargs):
        super().__init__(f"Horizon must be at least 1 month, got {horizon}", **kwargs)
        self.horizon = horizon
