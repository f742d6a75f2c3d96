"""Helper utilities for the application."""
import math
from datetime import date, datetime, timezone


def utc_today() -> date:
    """Current calendar day in UTC, the day every summary is filed under."""
    return datetime.now(timezone.utc).date()


def round_half_up(value: float, digits: int = 1) -> float:
    """
    Round halves away from zero for positive values (2.25 -> 2.3).

    Python's round() uses banker's rounding, which would report 2.2.

    Args:
        value: Value to round
        digits: Number of decimal places

    Returns:
        Rounded value
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
