"""
Conversions between clock times ("HH:MM") and minute-of-day integers.

Minute-of-day values live in [0, 1440) and are interpreted in the single
configured timezone.
"""

import math
from typing import Optional

from taskroom.core.exceptions import InvalidFormatError, OutOfRangeError

MINUTES_PER_DAY = 1440
MAX_MINUTE = MINUTES_PER_DAY - 1
QUARTER_HOUR = 15
# Latest quarter-hour start that still leaves room for a positive span
LAST_QUARTER_START = MAX_MINUTE - MAX_MINUTE % QUARTER_HOUR


def to_minutes(clock_time: str) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    Raises:
        InvalidFormatError: If the value is not two integer fields with
            hour in [0, 24) and minute in [0, 60)
    """
    parts = clock_time.strip().split(":") if isinstance(clock_time, str) else []
    if len(parts) != 2:
        raise InvalidFormatError(f"Invalid time format: {clock_time!r}")
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError as exc:
        raise InvalidFormatError(f"Invalid time format: {clock_time!r}") from exc
    if not 0 <= hours < 24 or not 0 <= minutes < 60:
        raise InvalidFormatError(f"Invalid time format: {clock_time!r}")
    return hours * 60 + minutes


def to_clock(minutes: int) -> str:
    """
    Convert minutes since midnight to zero-padded "HH:MM".

    Raises:
        OutOfRangeError: If minutes is outside [0, 1440)
    """
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise OutOfRangeError(f"Invalid minutes: {minutes}. Must be 0-{MAX_MINUTE}.")
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def round_to_quarter_hour(minutes: float) -> int:
    """
    Round to the nearest multiple of 15, halves rounding up.

    The result may be 1440; callers clamp with clamp_minute before storing.
    """
    return int(math.floor(minutes / QUARTER_HOUR + 0.5)) * QUARTER_HOUR


def clamp_minute(minutes: int) -> int:
    """Clamp a minute value into [0, 1439]."""
    return max(0, min(minutes, MAX_MINUTE))


def validate_minute(minutes: int) -> int:
    """Return minutes unchanged, or raise OutOfRangeError."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise OutOfRangeError(f"Invalid minutes: {minutes}. Must be 0-{MAX_MINUTE}.")
    return minutes


def format_time_range(start_minute: Optional[int], end_minute: Optional[int]) -> str:
    """Format a span as "09:00-10:00"; empty when either end is missing."""
    if start_minute is None or end_minute is None:
        return ""
    return f"{to_clock(start_minute)}-{to_clock(end_minute)}"
