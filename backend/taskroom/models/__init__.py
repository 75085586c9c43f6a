"""Pydantic models (schemas) for the application."""

from taskroom.models.enums import ScheduleBucket, ScheduleSource
from taskroom.models.task import Task, TaskCreate, TaskTimeHintUpdate
from taskroom.models.schedule import (
    BucketGroup,
    DaySchedule,
    DayScheduleEntry,
    ScheduleConflict,
    ScheduleDayResult,
    ScheduleEntry,
    ScheduleEntryTimeUpdate,
    ScheduleEntryUpsert,
)

__all__ = [
    # Enums
    "ScheduleBucket",
    "ScheduleSource",
    # Task
    "Task",
    "TaskCreate",
    "TaskTimeHintUpdate",
    # Schedule
    "BucketGroup",
    "DaySchedule",
    "DayScheduleEntry",
    "ScheduleConflict",
    "ScheduleDayResult",
    "ScheduleEntry",
    "ScheduleEntryTimeUpdate",
    "ScheduleEntryUpsert",
]
