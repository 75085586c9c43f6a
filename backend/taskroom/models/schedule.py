"""
Schedule entry models and the read-side day projection.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from taskroom.models.enums import ScheduleBucket, ScheduleSource
from taskroom.utils.time_codec import MAX_MINUTE


def _check_span(start: Optional[int], end: Optional[int]) -> None:
    if (start is None) != (end is None):
        raise ValueError("start_minute and end_minute must both be set or both be null")
    if start is None:
        return
    if end <= start:
        raise ValueError("end_minute must be after start_minute")


class ScheduleEntryUpsert(BaseModel):
    """
    Write model for one (room, task, date) entry.

    There is no bucket field: the repository derives it from start_minute.
    """

    room_id: str = Field(..., min_length=1)
    task_id: UUID
    date: date
    start_minute: Optional[int] = Field(None, ge=0, le=MAX_MINUTE)
    end_minute: Optional[int] = Field(None, ge=0, le=MAX_MINUTE)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    source: ScheduleSource = ScheduleSource.AI

    @model_validator(mode="after")
    def validate_span(self):
        _check_span(self.start_minute, self.end_minute)
        return self


class ScheduleEntry(BaseModel):
    """Persisted schedule entry."""

    id: UUID
    room_id: str
    task_id: UUID
    date: date
    start_minute: Optional[int] = None
    end_minute: Optional[int] = None
    bucket: ScheduleBucket
    confidence: float = 0.0
    source: ScheduleSource
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScheduleEntryTimeUpdate(BaseModel):
    """
    Direct user placement of one entry.

    Either minutes or clock strings ("HH:MM") may be given; clearing both
    moves the entry to UNSCHEDULED.
    """

    start_minute: Optional[int] = None
    end_minute: Optional[int] = None
    start: Optional[str] = Field(None, description="Clock time HH:MM")
    end: Optional[str] = Field(None, description="Clock time HH:MM")


class ScheduleConflict(BaseModel):
    """Two entries whose intervals still overlap."""

    first_task_id: UUID
    second_task_id: UUID


class ScheduleDayResult(BaseModel):
    """Outcome of one scheduling run for a room and date."""

    room_id: str
    date: date
    scheduled: int = 0
    unscheduled: int = 0
    adjusted: int = Field(0, description="Entries moved by conflict resolution")
    preserved: int = Field(0, description="USER entries left untouched")
    residual_conflicts: list[ScheduleConflict] = Field(default_factory=list)


class DayScheduleEntry(BaseModel):
    """One row of the timeline view."""

    entry_id: UUID
    task_id: UUID
    content: Optional[str] = None
    start_minute: Optional[int] = None
    end_minute: Optional[int] = None
    time_range: str = ""
    confidence: float = 0.0
    source: ScheduleSource


class BucketGroup(BaseModel):
    """Entries of one bucket, ordered by start minute."""

    bucket: ScheduleBucket
    label: str
    time_range: str
    entries: list[DayScheduleEntry] = Field(default_factory=list)


class DaySchedule(BaseModel):
    """Read-only projection of a room's day grouped into the five buckets."""

    room_id: str
    date: date
    buckets: list[BucketGroup] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(group.entries) for group in self.buckets)

    def group(self, bucket: ScheduleBucket) -> BucketGroup:
        for entry in self.buckets:
            if entry.bucket == bucket:
                return entry
        raise KeyError(bucket)
