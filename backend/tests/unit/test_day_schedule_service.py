"""
Unit tests for DayScheduleService.
"""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from taskroom.core.exceptions import (
    ExtractionFormatError,
    ExtractionUnavailableError,
    OutOfRangeError,
    ValidationError,
)
from taskroom.models.enums import ScheduleBucket, ScheduleSource
from taskroom.models.schedule import ScheduleEntry, ScheduleEntryUpsert
from taskroom.models.task import Task
from taskroom.models.time_extraction import TimeSuggestion
from taskroom.services.bucket_classifier import classify
from taskroom.services.day_schedule_service import (
    DayLockRegistry,
    DayScheduleService,
    normalize_span,
)

ROOM = "room-1"
PLAN_DATE = date(2025, 3, 10)
NOW = datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)


def _task(content: str, hint=None) -> Task:
    return Task(
        id=uuid4(),
        room_id=ROOM,
        content=content,
        scheduled_time=hint,
        created_at=NOW,
        updated_at=NOW,
    )


def _entry_from_upsert(data: ScheduleEntryUpsert) -> ScheduleEntry:
    return ScheduleEntry(
        id=uuid4(),
        room_id=data.room_id,
        task_id=data.task_id,
        date=data.date,
        start_minute=data.start_minute,
        end_minute=data.end_minute,
        bucket=classify(data.start_minute),
        confidence=data.confidence,
        source=data.source,
        created_at=NOW,
        updated_at=NOW,
    )


def _entry(task_id: UUID, start, end, source=ScheduleSource.AI, confidence=0.0) -> ScheduleEntry:
    return ScheduleEntry(
        id=uuid4(),
        room_id=ROOM,
        task_id=task_id,
        date=PLAN_DATE,
        start_minute=start,
        end_minute=end,
        bucket=classify(start),
        confidence=confidence,
        source=source,
        created_at=NOW,
        updated_at=NOW,
    )


def _suggestion(task_id, start, end, confidence) -> TimeSuggestion:
    return TimeSuggestion(
        task_id=str(task_id),
        start_minute=start,
        end_minute=end,
        bucket="MORNING",
        confidence=confidence,
    )


def _service(tasks, suggestions=None, existing=None, **kwargs):
    task_repo = AsyncMock()
    task_repo.list_by_room.return_value = tasks
    entry_repo = AsyncMock()
    entry_repo.list_by_room_date.return_value = existing or []
    entry_repo.upsert.side_effect = lambda data: _entry_from_upsert(data)
    extraction = AsyncMock()
    extraction.extract.return_value = suggestions or []
    service = DayScheduleService(
        task_repo=task_repo,
        entry_repo=entry_repo,
        extraction_service=extraction,
        timezone="Asia/Shanghai",
        locks=DayLockRegistry(),
        **kwargs,
    )
    return service, task_repo, entry_repo, extraction


def _upserts_by_task(entry_repo) -> dict:
    return {call.args[0].task_id: call.args[0] for call in entry_repo.upsert.call_args_list}


# ---------------------------------------------------------------------
# normalize_span
# ---------------------------------------------------------------------


def test_normalize_span_rounds_both_ends():
    assert normalize_span(547, 608) == (540, 615)


def test_normalize_span_null_start_drops_end():
    assert normalize_span(None, 600) == (None, None)


def test_normalize_span_missing_end_gets_default_duration():
    assert normalize_span(540, None, 45) == (540, 585)


def test_normalize_span_collapsed_end_gets_default_duration():
    assert normalize_span(540, 545) == (540, 600)


def test_normalize_span_clamps_to_end_of_day():
    assert normalize_span(1400, None) == (1395, 1439)


@pytest.mark.parametrize("start,end", [(1433, 1439), (1436, None), (1439, 1439)])
def test_normalize_span_late_start_keeps_positive_span(start, end):
    assert normalize_span(start, end) == (1425, 1439)


# ---------------------------------------------------------------------
# schedule_day
# ---------------------------------------------------------------------


@pytest.mark.asyncio
async def test_schedule_day_without_tasks_skips_extraction_and_writes():
    service, _, entry_repo, extraction = _service([])

    result = await service.schedule_day(ROOM, PLAN_DATE)

    assert result.scheduled == 0
    assert result.unscheduled == 0
    extraction.extract.assert_not_called()
    entry_repo.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_schedule_day_resolves_overlap_by_confidence():
    gym = _task("Gym at 9am")
    call = _task("Call at 9:15am")
    service, _, entry_repo, extraction = _service(
        [gym, call],
        [_suggestion(gym.id, 540, 600, 0.9), _suggestion(call.id, 555, 615, 0.7)],
    )

    result = await service.schedule_day(ROOM, PLAN_DATE)

    upserts = _upserts_by_task(entry_repo)
    assert (upserts[gym.id].start_minute, upserts[gym.id].end_minute) == (540, 600)
    assert (upserts[call.id].start_minute, upserts[call.id].end_minute) == (600, 660)
    assert all(u.source == ScheduleSource.AI for u in upserts.values())
    assert result.scheduled == 2
    assert result.unscheduled == 0
    assert result.adjusted == 1
    assert result.residual_conflicts == []
    request = extraction.extract.call_args.args[0]
    assert request.timezone == "Asia/Shanghai"
    assert request.date == PLAN_DATE


@pytest.mark.asyncio
async def test_schedule_day_passes_time_hints():
    task = _task("Read", hint="evening")
    service, _, _, extraction = _service([task], [_suggestion(task.id, 1140, 1200, 0.6)])

    await service.schedule_day(ROOM, PLAN_DATE)

    request = extraction.extract.call_args.args[0]
    assert request.tasks[0].hint == "evening"
    assert request.tasks[0].task_id == str(task.id)


@pytest.mark.asyncio
async def test_schedule_day_null_start_is_unscheduled():
    task = _task("Someday maybe")
    service, _, entry_repo, _ = _service([task], [_suggestion(task.id, None, None, 0.3)])

    result = await service.schedule_day(ROOM, PLAN_DATE)

    upsert = entry_repo.upsert.call_args.args[0]
    assert upsert.start_minute is None
    assert upsert.confidence == 0.3
    assert result.unscheduled == 1
    assert result.scheduled == 0


@pytest.mark.asyncio
async def test_schedule_day_rounds_suggestions():
    task = _task("Standup")
    service, _, entry_repo, _ = _service([task], [_suggestion(task.id, 548, 577, 0.8)])

    await service.schedule_day(ROOM, PLAN_DATE)

    upsert = entry_repo.upsert.call_args.args[0]
    assert (upsert.start_minute, upsert.end_minute) == (555, 570)


@pytest.mark.asyncio
async def test_schedule_day_missing_and_unknown_suggestions():
    known = _task("Gym")
    forgotten = _task("Laundry")
    service, _, entry_repo, _ = _service(
        [known, forgotten],
        [_suggestion(known.id, 540, 600, 0.9), _suggestion(uuid4(), 600, 660, 0.9)],
    )

    result = await service.schedule_day(ROOM, PLAN_DATE)

    upserts = _upserts_by_task(entry_repo)
    assert set(upserts) == {known.id, forgotten.id}
    assert upserts[forgotten.id].start_minute is None
    assert upserts[forgotten.id].confidence == 0.0
    assert result.scheduled == 1
    assert result.unscheduled == 1


@pytest.mark.asyncio
async def test_schedule_day_duplicate_suggestions_keep_most_confident():
    task = _task("Gym")
    service, _, entry_repo, _ = _service(
        [task],
        [
            _suggestion(task.id, 540, 600, 0.4),
            _suggestion(task.id, 1080, 1140, 0.8),
            _suggestion(task.id, 720, 780, 0.8),
        ],
    )

    await service.schedule_day(ROOM, PLAN_DATE)

    assert entry_repo.upsert.call_count == 1
    assert entry_repo.upsert.call_args.args[0].start_minute == 1080


@pytest.mark.asyncio
async def test_schedule_day_format_error_writes_nothing():
    task = _task("Gym")
    service, _, entry_repo, extraction = _service([task])
    extraction.extract.side_effect = ExtractionFormatError("bad output")

    with pytest.raises(ExtractionFormatError):
        await service.schedule_day(ROOM, PLAN_DATE)

    entry_repo.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_schedule_day_unavailable_writes_nothing():
    task = _task("Gym")
    service, _, entry_repo, extraction = _service([task])
    extraction.extract.side_effect = ExtractionUnavailableError("timeout")

    with pytest.raises(ExtractionUnavailableError):
        await service.schedule_day(ROOM, PLAN_DATE)

    entry_repo.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_schedule_day_without_extraction_client_is_unavailable():
    task = _task("Gym")
    service, _, entry_repo, _ = _service([task])
    service._extraction_service = None

    with pytest.raises(ExtractionUnavailableError):
        await service.schedule_day(ROOM, PLAN_DATE)

    entry_repo.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_schedule_day_preserves_user_entries():
    pinned = _task("Dentist")
    other = _task("Gym")
    user_entry = _entry(pinned.id, 540, 600, source=ScheduleSource.USER)
    service, _, entry_repo, _ = _service(
        [pinned, other],
        [_suggestion(pinned.id, 1200, 1260, 0.9), _suggestion(other.id, 555, 615, 0.99)],
        existing=[user_entry],
    )

    result = await service.schedule_day(ROOM, PLAN_DATE)

    upserts = _upserts_by_task(entry_repo)
    assert pinned.id not in upserts
    # The AI interval moves after the pinned one regardless of confidence
    assert (upserts[other.id].start_minute, upserts[other.id].end_minute) == (600, 660)
    assert result.preserved == 1
    assert result.scheduled == 2
    assert result.adjusted == 1


@pytest.mark.asyncio
async def test_schedule_day_overwrites_user_entries_when_not_preserving():
    pinned = _task("Dentist")
    user_entry = _entry(pinned.id, 540, 600, source=ScheduleSource.USER)
    service, _, entry_repo, _ = _service(
        [pinned],
        [_suggestion(pinned.id, 1200, 1260, 0.9)],
        existing=[user_entry],
        preserve_user_edits=False,
    )

    result = await service.schedule_day(ROOM, PLAN_DATE)

    upsert = entry_repo.upsert.call_args.args[0]
    assert upsert.start_minute == 1200
    assert upsert.source == ScheduleSource.AI
    assert result.preserved == 0


@pytest.mark.asyncio
async def test_schedule_day_reports_residual_conflicts():
    first = _task("Meeting")
    second = _task("Lunch")
    service, _, _, _ = _service(
        [first, second],
        [_suggestion(first.id, 540, 600, 0.5), _suggestion(second.id, 555, 615, 0.9)],
    )

    result = await service.schedule_day(ROOM, PLAN_DATE)

    assert len(result.residual_conflicts) == 1
    conflict = result.residual_conflicts[0]
    assert {conflict.first_task_id, conflict.second_task_id} == {first.id, second.id}


@pytest.mark.asyncio
async def test_schedule_day_runs_are_serialized_per_room_date():
    task = _task("Gym")
    service, _, _, extraction = _service([task])
    active = 0
    peak = 0

    async def slow_extract(request):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return [_suggestion(task.id, 540, 600, 0.9)]

    extraction.extract.side_effect = slow_extract

    await asyncio.gather(
        service.schedule_day(ROOM, PLAN_DATE),
        service.schedule_day(ROOM, PLAN_DATE),
    )

    assert peak == 1
    assert extraction.extract.call_count == 2


# ---------------------------------------------------------------------
# update_task_schedule / clear / get
# ---------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_task_schedule_pins_entry():
    service, _, entry_repo, extraction = _service([])
    entry_id = uuid4()
    entry_repo.update_times.return_value = _entry(uuid4(), 1080, 1140, source=ScheduleSource.USER)

    entry = await service.update_task_schedule(entry_id, 1080, 1140)

    entry_repo.update_times.assert_awaited_once_with(entry_id, 1080, 1140, ScheduleSource.USER)
    assert entry.bucket == ScheduleBucket.EVENING
    extraction.extract.assert_not_called()


@pytest.mark.asyncio
async def test_update_task_schedule_allows_clearing_times():
    service, _, entry_repo, _ = _service([])
    entry_repo.update_times.return_value = _entry(uuid4(), None, None, source=ScheduleSource.USER)

    entry = await service.update_task_schedule(uuid4(), None, None)

    assert entry.bucket == ScheduleBucket.UNSCHEDULED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "start,end,error",
    [
        (540, None, ValidationError),
        (600, 540, ValidationError),
        (600, 600, ValidationError),
        (-1, 60, OutOfRangeError),
        (600, 1440, OutOfRangeError),
    ],
)
async def test_update_task_schedule_rejects_bad_spans(start, end, error):
    service, _, entry_repo, _ = _service([])

    with pytest.raises(error):
        await service.update_task_schedule(uuid4(), start, end)

    entry_repo.update_times.assert_not_called()


@pytest.mark.asyncio
async def test_clear_day_schedule_returns_removed_count():
    service, _, entry_repo, _ = _service([])
    entry_repo.delete_by_room_date.return_value = 4

    removed = await service.clear_day_schedule(ROOM, PLAN_DATE)

    assert removed == 4
    entry_repo.delete_by_room_date.assert_awaited_once_with(ROOM, PLAN_DATE)


@pytest.mark.asyncio
async def test_get_day_schedule_groups_into_five_buckets():
    gym = _task("Gym")
    late = _task("Walk dog")
    early = _task("Meditate")
    someday = _task("Someday")
    entries = [
        _entry(early.id, 60, 90),
        _entry(gym.id, 600, 660),
        _entry(late.id, 1320, 1380),
        _entry(someday.id, None, None),
    ]
    service, _, _, extraction = _service([gym, late, early, someday], existing=entries)

    schedule = await service.get_day_schedule(ROOM, PLAN_DATE)

    assert [group.bucket for group in schedule.buckets] == [
        ScheduleBucket.MORNING,
        ScheduleBucket.AFTERNOON,
        ScheduleBucket.EVENING,
        ScheduleBucket.NIGHT,
        ScheduleBucket.UNSCHEDULED,
    ]
    assert schedule.total == 4
    morning = schedule.group(ScheduleBucket.MORNING)
    assert morning.label == "Morning"
    assert morning.entries[0].content == "Gym"
    assert morning.entries[0].time_range == "10:00-11:00"
    night = schedule.group(ScheduleBucket.NIGHT)
    assert [e.start_minute for e in night.entries] == [60, 1320]
    assert schedule.group(ScheduleBucket.EVENING).entries == []
    assert schedule.group(ScheduleBucket.UNSCHEDULED).entries[0].time_range == ""
    extraction.extract.assert_not_called()


@pytest.mark.asyncio
async def test_get_day_schedule_empty_day():
    service, task_repo, _, _ = _service([])

    schedule = await service.get_day_schedule(ROOM, PLAN_DATE)

    assert schedule.total == 0
    assert len(schedule.buckets) == 5
    task_repo.list_by_room.assert_not_called()


@pytest.mark.asyncio
async def test_day_lock_registry_releases_keys():
    locks = DayLockRegistry()

    async with locks.hold(ROOM, PLAN_DATE):
        assert locks.is_held(ROOM, PLAN_DATE)

    assert not locks.is_held(ROOM, PLAN_DATE)
    assert locks._locks == {}
