"""
Day schedule API endpoints.

Scheduling a room's day, the bucketed day view, and manual placement of
single entries.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from taskroom.api.deps import DayScheduler, DayScheduleSvc
from taskroom.core.config import get_settings
from taskroom.core.exceptions import (
    ExtractionFormatError,
    ExtractionUnavailableError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from taskroom.models.schedule import (
    DaySchedule,
    ScheduleDayResult,
    ScheduleEntry,
    ScheduleEntryTimeUpdate,
)
from taskroom.utils.datetime_utils import get_today_in_timezone, parse_plan_date
from taskroom.utils.time_codec import to_minutes

router = APIRouter()


def _plan_date_or_422(value: str) -> date:
    """Accept YYYY-MM-DD, or "today" in the configured timezone."""
    if value == "today":
        return get_today_in_timezone(get_settings().TIMEZONE)
    try:
        return parse_plan_date(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid date '{value}', expected YYYY-MM-DD",
        ) from exc


def resolve_update_minutes(update: ScheduleEntryTimeUpdate) -> tuple[Optional[int], Optional[int]]:
    """Minutes win over clock strings when both are given."""
    start = update.start_minute
    end = update.end_minute
    if start is None and update.start is not None:
        start = to_minutes(update.start)
    if end is None and update.end is not None:
        end = to_minutes(update.end)
    return start, end


@router.post("/rooms/{room_id}/schedule/{plan_date}", response_model=ScheduleDayResult)
async def schedule_day(
    room_id: str,
    plan_date: str,
    service: DayScheduler,
):
    """Extract times for every task of the room and persist the day."""
    target = _plan_date_or_422(plan_date)
    try:
        return await service.schedule_day(room_id, target)
    except ExtractionUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )
    except ExtractionFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        )
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )


@router.get("/rooms/{room_id}/schedule/{plan_date}", response_model=DaySchedule)
async def get_day_schedule(
    room_id: str,
    plan_date: str,
    service: DayScheduleSvc,
):
    """Get the room's day grouped into buckets."""
    target = _plan_date_or_422(plan_date)
    return await service.get_day_schedule(room_id, target)


@router.delete("/rooms/{room_id}/schedule/{plan_date}")
async def clear_day_schedule(
    room_id: str,
    plan_date: str,
    service: DayScheduleSvc,
):
    """Remove every entry of the room's day."""
    target = _plan_date_or_422(plan_date)
    try:
        removed = await service.clear_day_schedule(room_id, target)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )
    return {"room_id": room_id, "date": target.isoformat(), "removed": removed}


@router.patch("/schedule-entries/{entry_id}", response_model=ScheduleEntry)
async def update_task_schedule(
    entry_id: UUID,
    update: ScheduleEntryTimeUpdate,
    service: DayScheduleSvc,
):
    """
    Place one entry by hand.

    Accepts minutes or "HH:MM" clock strings. Sending no times at all
    moves the entry to Unscheduled.
    """
    try:
        start, end = resolve_update_minutes(update)
        return await service.update_task_schedule(entry_id, start, end)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )
