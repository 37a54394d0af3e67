"""Journal error taxonomy."""


class JournalError(Exception):
    """Base class for rejected journal operations."""


class InvalidInput(JournalError):
    """Missing, non-numeric or non-positive value on open/buy/sell."""


class InvalidPercentage(JournalError):
    """Sell percentage out of bounds or over 100% cumulative."""


class PositionClosed(JournalError):
    """Buy or sell attempted on a completed position."""


class TradeNotFound(JournalError):
    """No position with the requested id."""


class ReflectionError(JournalError):
    """Reflection rejected: position still active, already reflected, or bad score."""
