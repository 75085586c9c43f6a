"""
Enum definitions for the application.

These enums are used across models and provide type-safe bucket/source values.
"""

from enum import Enum


class ScheduleBucket(str, Enum):
    """
    Coarse part of the day a schedule entry falls into.

    MORNING   = 06:00-12:00
    AFTERNOON = 12:00-17:00
    EVENING   = 17:00-21:00
    NIGHT     = 21:00-06:00
    UNSCHEDULED = no start time
    """

    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"
    NIGHT = "NIGHT"
    UNSCHEDULED = "UNSCHEDULED"


class ScheduleSource(str, Enum):
    """Who placed a schedule entry."""

    AI = "AI"
    USER = "USER"
