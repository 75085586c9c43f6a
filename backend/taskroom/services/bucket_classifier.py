"""
Time-of-day bucket classification.

Buckets use half-open minute-of-day intervals:
MORNING [360, 720), AFTERNOON [720, 1020), EVENING [1020, 1260),
NIGHT [1260, 1440) and [0, 360). A missing start is UNSCHEDULED.
"""

from typing import Optional

from taskroom.models.enums import ScheduleBucket

MORNING_START = 360
AFTERNOON_START = 720
EVENING_START = 1020
NIGHT_START = 1260

# Display order of the day view
BUCKET_ORDER: tuple[ScheduleBucket, ...] = (
    ScheduleBucket.MORNING,
    ScheduleBucket.AFTERNOON,
    ScheduleBucket.EVENING,
    ScheduleBucket.NIGHT,
    ScheduleBucket.UNSCHEDULED,
)

# Midpoints the extraction service uses for relative time words
BUCKET_MIDPOINTS: dict[ScheduleBucket, int] = {
    ScheduleBucket.MORNING: 540,
    ScheduleBucket.AFTERNOON: 840,
    ScheduleBucket.EVENING: 1140,
    ScheduleBucket.NIGHT: 1320,
}

_LABELS: dict[ScheduleBucket, str] = {
    ScheduleBucket.MORNING: "Morning",
    ScheduleBucket.AFTERNOON: "Afternoon",
    ScheduleBucket.EVENING: "Evening",
    ScheduleBucket.NIGHT: "Night",
    ScheduleBucket.UNSCHEDULED: "Unscheduled",
}

_TIME_RANGES: dict[ScheduleBucket, str] = {
    ScheduleBucket.MORNING: "06:00-12:00",
    ScheduleBucket.AFTERNOON: "12:00-17:00",
    ScheduleBucket.EVENING: "17:00-21:00",
    ScheduleBucket.NIGHT: "21:00-06:00",
    ScheduleBucket.UNSCHEDULED: "No time set",
}


def classify(start_minute: Optional[int]) -> ScheduleBucket:
    """Map a start minute (or None) to its bucket."""
    if start_minute is None:
        return ScheduleBucket.UNSCHEDULED
    if MORNING_START <= start_minute < AFTERNOON_START:
        return ScheduleBucket.MORNING
    if AFTERNOON_START <= start_minute < EVENING_START:
        return ScheduleBucket.AFTERNOON
    if EVENING_START <= start_minute < NIGHT_START:
        return ScheduleBucket.EVENING
    return ScheduleBucket.NIGHT


def bucket_label(bucket: ScheduleBucket) -> str:
    return _LABELS[bucket]


def bucket_time_range(bucket: ScheduleBucket) -> str:
    return _TIME_RANGES[bucket]
