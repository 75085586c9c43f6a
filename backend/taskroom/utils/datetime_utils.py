"""
Timezone-aware datetime utilities.

The scheduling core works on plain calendar dates and minute-of-day values;
these helpers are used at the edges to produce timestamps and "today".
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Replaces datetime.utcnow() which is deprecated in Python 3.12+.
    """
    return datetime.now(UTC)


def get_today_in_timezone(tz_name: str) -> date:
    """
    Get today's date in the given timezone.

    Args:
        tz_name: IANA timezone name (e.g., "Asia/Shanghai", "America/New_York")

    Example:
        >>> get_today_in_timezone("Asia/Tokyo")  # When UTC is 2024-01-19 23:00
        date(2024, 1, 20)  # JST is 2024-01-20 08:00
    """
    tz = ZoneInfo(tz_name)
    return datetime.now(UTC).astimezone(tz).date()


def parse_plan_date(value: str) -> date:
    """
    Parse a plain ISO calendar date ("YYYY-MM-DD").

    Raises:
        ValueError: If the string is not a calendar date
    """
    if len(value) != 10:
        raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD")
    return date.fromisoformat(value)
