"""
Day scheduling service.

Turns a room's free-text tasks into a persisted, overlap-resolved schedule
for one date:

    tasks -> extraction suggestions -> quarter-hour spans
          -> conflict resolution -> bucketed upserts

and serves the read-only day projection grouped by bucket.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import AsyncIterator, Optional
from uuid import UUID

from taskroom.core.exceptions import ExtractionUnavailableError, ValidationError
from taskroom.core.logger import setup_logger
from taskroom.interfaces.schedule_entry_repository import IScheduleEntryRepository
from taskroom.interfaces.task_repository import ITaskRepository
from taskroom.models.enums import ScheduleBucket, ScheduleSource
from taskroom.models.schedule import (
    BucketGroup,
    DaySchedule,
    DayScheduleEntry,
    ScheduleConflict,
    ScheduleDayResult,
    ScheduleEntry,
    ScheduleEntryUpsert,
)
from taskroom.models.task import Task
from taskroom.models.time_extraction import (
    ExtractionTaskInput,
    TimeExtractionRequest,
    TimeSuggestion,
)
from taskroom.services.bucket_classifier import (
    BUCKET_ORDER,
    bucket_label,
    bucket_time_range,
    classify,
)
from taskroom.services.conflict_resolver import (
    ProposedInterval,
    find_conflicts,
    resolve_conflicts,
)
from taskroom.services.time_extraction_service import TimeExtractionService
from taskroom.utils.time_codec import (
    LAST_QUARTER_START,
    MAX_MINUTE,
    clamp_minute,
    format_time_range,
    round_to_quarter_hour,
    validate_minute,
)

logger = setup_logger(__name__)

DEFAULT_TASK_DURATION_MINUTES = 60

# USER placements outrank any extraction confidence.
PINNED_CONFIDENCE = float("inf")


class DayLockRegistry:
    """Single-flight guard keyed on (room, date)."""

    def __init__(self) -> None:
        self._locks: dict[tuple[str, date], asyncio.Lock] = {}
        self._waiters: dict[tuple[str, date], int] = {}

    @asynccontextmanager
    async def hold(self, room_id: str, plan_date: date) -> AsyncIterator[None]:
        key = (room_id, plan_date)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                self._waiters.pop(key, None)
                self._locks.pop(key, None)

    def is_held(self, room_id: str, plan_date: date) -> bool:
        lock = self._locks.get((room_id, plan_date))
        return bool(lock and lock.locked())


day_schedule_locks = DayLockRegistry()


@dataclass
class NormalizedSuggestion:
    start_minute: Optional[int]
    end_minute: Optional[int]
    confidence: float


def normalize_span(
    start_minute: Optional[int],
    end_minute: Optional[int],
    default_duration: int = DEFAULT_TASK_DURATION_MINUTES,
) -> tuple[Optional[int], Optional[int]]:
    """
    Round both ends to quarter hours and keep the span inside the day.

    A missing start drops the end too. A start past the last quarter hour is
    pulled back to 23:45. A missing or non-positive span gets the default
    duration, cut off at 23:59.
    """
    if start_minute is None:
        return None, None
    start = min(clamp_minute(round_to_quarter_hour(start_minute)), LAST_QUARTER_START)
    end = None if end_minute is None else clamp_minute(round_to_quarter_hour(end_minute))
    if end is None or end <= start:
        end = min(start + default_duration, MAX_MINUTE)
    return start, end


def _parse_task_id(raw: str) -> Optional[UUID]:
    try:
        return UUID(raw)
    except (ValueError, AttributeError, TypeError):
        return None


class DayScheduleService:
    """Schedules a room's day and serves the bucketed day view."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        entry_repo: IScheduleEntryRepository,
        extraction_service: Optional[TimeExtractionService],
        timezone: str,
        default_duration_minutes: int = DEFAULT_TASK_DURATION_MINUTES,
        preserve_user_edits: bool = True,
        locks: Optional[DayLockRegistry] = None,
    ):
        self._task_repo = task_repo
        self._entry_repo = entry_repo
        self._extraction_service = extraction_service
        self._timezone = timezone
        self._default_duration = default_duration_minutes
        self._preserve_user_edits = preserve_user_edits
        self._locks = locks or day_schedule_locks

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    async def schedule_day(
        self,
        room_id: str,
        plan_date: date,
        timezone: Optional[str] = None,
    ) -> ScheduleDayResult:
        """
        Schedule every task of a room for one date.

        Safe to re-run: entries are upserted by (room, task, date). With
        preserve_user_edits, USER entries are left as they are and AI
        suggestions are moved around them.

        Raises:
            ExtractionUnavailableError: Extraction call failed; nothing written
            ExtractionFormatError: Extraction output rejected; nothing written
            PersistenceError: An upsert failed; earlier upserts remain
        """
        tz = timezone or self._timezone
        async with self._locks.hold(room_id, plan_date):
            tasks = await self._task_repo.list_by_room(room_id)
            if not tasks:
                logger.info(f"Room {room_id} has no tasks for {plan_date}; skipping extraction")
                return ScheduleDayResult(room_id=room_id, date=plan_date)

            pinned = await self._load_pinned(room_id, plan_date)

            request = TimeExtractionRequest(
                date=plan_date,
                timezone=tz,
                tasks=[
                    ExtractionTaskInput(
                        task_id=str(task.id),
                        text=task.content,
                        hint=task.scheduled_time,
                    )
                    for task in tasks
                ],
            )
            if self._extraction_service is None:
                raise ExtractionUnavailableError("No time extraction service configured")
            suggestions = await self._extraction_service.extract(request)
            normalized = self._normalize(tasks, suggestions)

            candidates: list[ProposedInterval[UUID]] = []
            fixed: list[ProposedInterval[UUID]] = []
            for task in tasks:
                if task.id in pinned:
                    entry = pinned[task.id]
                    if entry.start_minute is not None:
                        fixed.append(
                            ProposedInterval(
                                id=task.id,
                                start_minute=entry.start_minute,
                                end_minute=entry.end_minute,
                                confidence=PINNED_CONFIDENCE,
                            )
                        )
                    continue
                suggestion = normalized[task.id]
                if suggestion.start_minute is not None:
                    candidates.append(
                        ProposedInterval(
                            id=task.id,
                            start_minute=suggestion.start_minute,
                            end_minute=suggestion.end_minute,
                            confidence=suggestion.confidence,
                        )
                    )

            resolved = {interval.id: interval for interval in resolve_conflicts(candidates, fixed=fixed)}

            result = ScheduleDayResult(room_id=room_id, date=plan_date)
            for task in tasks:
                if task.id in pinned:
                    result.preserved += 1
                    self._count(result, pinned[task.id].bucket)
                    continue
                suggestion = normalized[task.id]
                interval = resolved.get(task.id)
                if interval is not None and interval.adjusted:
                    result.adjusted += 1
                entry = await self._entry_repo.upsert(
                    ScheduleEntryUpsert(
                        room_id=room_id,
                        task_id=task.id,
                        date=plan_date,
                        start_minute=interval.start_minute if interval else None,
                        end_minute=interval.end_minute if interval else None,
                        confidence=suggestion.confidence,
                        source=ScheduleSource.AI,
                    )
                )
                self._count(result, entry.bucket)

            result.residual_conflicts = [
                ScheduleConflict(first_task_id=first, second_task_id=second)
                for first, second in find_conflicts([*fixed, *resolved.values()])
            ]

        logger.info(
            f"Scheduled room {room_id} on {plan_date}: scheduled={result.scheduled} "
            f"unscheduled={result.unscheduled} adjusted={result.adjusted} "
            f"preserved={result.preserved}"
        )
        return result

    async def update_task_schedule(
        self,
        entry_id: UUID,
        start_minute: Optional[int],
        end_minute: Optional[int],
    ) -> ScheduleEntry:
        """
        Place one entry where the user put it.

        No conflict resolution runs; the bucket follows the new start and
        the entry becomes USER-sourced. Passing both values as None moves
        the entry to UNSCHEDULED.

        Raises:
            OutOfRangeError: A minute is outside [0, 1440)
            ValidationError: Only one end given, or end not after start
            NotFoundError: Unknown entry
        """
        if (start_minute is None) != (end_minute is None):
            raise ValidationError("start_minute and end_minute must both be set or both be null")
        if start_minute is not None:
            validate_minute(start_minute)
            validate_minute(end_minute)
            if end_minute <= start_minute:
                raise ValidationError("end_minute must be after start_minute")

        entry = await self._entry_repo.update_times(
            entry_id,
            start_minute,
            end_minute,
            ScheduleSource.USER,
        )
        logger.info(f"Entry {entry_id} pinned by user to {entry.bucket.value}")
        return entry

    async def clear_day_schedule(self, room_id: str, plan_date: date) -> int:
        """Delete every entry of a room's day. Returns the number removed."""
        removed = await self._entry_repo.delete_by_room_date(room_id, plan_date)
        logger.info(f"Cleared {removed} schedule entries for room {room_id} on {plan_date}")
        return removed

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def get_day_schedule(self, room_id: str, plan_date: date) -> DaySchedule:
        """Group a room's persisted entries into the five buckets."""
        entries = await self._entry_repo.list_by_room_date(room_id, plan_date)
        tasks = await self._task_repo.list_by_room(room_id) if entries else []
        content_by_id = {task.id: task.content for task in tasks}

        grouped: dict[ScheduleBucket, list[ScheduleEntry]] = defaultdict(list)
        for entry in entries:
            grouped[entry.bucket].append(entry)

        buckets: list[BucketGroup] = []
        for bucket in BUCKET_ORDER:
            members = grouped.get(bucket, [])
            if bucket != ScheduleBucket.UNSCHEDULED:
                members = sorted(members, key=lambda entry: entry.start_minute)
            buckets.append(
                BucketGroup(
                    bucket=bucket,
                    label=bucket_label(bucket),
                    time_range=bucket_time_range(bucket),
                    entries=[
                        DayScheduleEntry(
                            entry_id=entry.id,
                            task_id=entry.task_id,
                            content=content_by_id.get(entry.task_id),
                            start_minute=entry.start_minute,
                            end_minute=entry.end_minute,
                            time_range=format_time_range(entry.start_minute, entry.end_minute),
                            confidence=entry.confidence,
                            source=entry.source,
                        )
                        for entry in members
                    ],
                )
            )
        return DaySchedule(room_id=room_id, date=plan_date, buckets=buckets)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_pinned(self, room_id: str, plan_date: date) -> dict[UUID, ScheduleEntry]:
        if not self._preserve_user_edits:
            return {}
        existing = await self._entry_repo.list_by_room_date(room_id, plan_date)
        return {entry.task_id: entry for entry in existing if entry.source == ScheduleSource.USER}

    def _normalize(
        self,
        tasks: list[Task],
        suggestions: list[TimeSuggestion],
    ) -> dict[UUID, NormalizedSuggestion]:
        """
        One normalized suggestion per task.

        Unknown ids are dropped, duplicates keep the most confident entry
        (first wins on ties), and tasks without a suggestion are unscheduled.
        """
        task_ids = {task.id for task in tasks}
        chosen: dict[UUID, TimeSuggestion] = {}
        for suggestion in suggestions:
            task_id = _parse_task_id(suggestion.task_id)
            if task_id not in task_ids:
                logger.warning(f"Dropping suggestion for unknown task id {suggestion.task_id!r}")
                continue
            previous = chosen.get(task_id)
            if previous is not None:
                logger.warning(f"Duplicate suggestion for task {task_id}; keeping the most confident")
                if suggestion.confidence <= previous.confidence:
                    continue
            chosen[task_id] = suggestion

        normalized: dict[UUID, NormalizedSuggestion] = {}
        for task in tasks:
            suggestion = chosen.get(task.id)
            if suggestion is None:
                logger.warning(f"No suggestion returned for task {task.id}; leaving it unscheduled")
                normalized[task.id] = NormalizedSuggestion(None, None, 0.0)
                continue
            start, end = normalize_span(
                suggestion.start_minute,
                suggestion.end_minute,
                self._default_duration,
            )
            normalized[task.id] = NormalizedSuggestion(start, end, suggestion.confidence)
        return normalized

    @staticmethod
    def _count(result: ScheduleDayResult, bucket: ScheduleBucket) -> None:
        if bucket == ScheduleBucket.UNSCHEDULED:
            result.unscheduled += 1
        else:
            result.scheduled += 1
