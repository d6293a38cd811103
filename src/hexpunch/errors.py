"""
Exception types raised by the hexpunch buffer, search and region layers.
"""

from typing import Optional


class HexpunchError(Exception):
    """Base class for every error raised by hexpunch."""


class BufferRangeError(HexpunchError, ValueError):
    """Raised when a caller violates a buffer range precondition."""

    def __init__(self, message: str, *, offset: Optional[int] = None,
                 length: Optional[int] = None) -> None:
        super().__init__(message)
        self.offset = offset
        self.length = length


class PatternSyntaxError(HexpunchError, ValueError):
    """Raised when search pattern text cannot be turned into a pattern."""


class InvalidMarkerError(HexpunchError, ValueError):
    """Raised for marker symbols outside the a-z alphabet."""

    def __init__(self, symbol: object) -> None:
        super().__init__(f"Invalid marker: {symbol!r} (expected a-z)")
        self.symbol = symbol


class NoSearchPatternError(HexpunchError):
    """Raised when a search is continued before any pattern was given."""


class ShortWriteError(HexpunchError, IOError):
    """Raised when a sink accepts fewer bytes than were handed to it."""

    def __init__(self, requested: int, written: int, target: str = '') -> None:
        where = f" to {target}" if target else ''
        super().__init__(f"Wrote {written} out of {requested} bytes{where}")
        self.requested = requested
        self.written = written
        self.target = target


class ConfigError(HexpunchError, ValueError):
    """Raised when configuration values cannot be parsed."""
