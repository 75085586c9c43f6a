"""
SQLite implementation of schedule entry repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from taskroom.core.exceptions import NotFoundError, PersistenceError
from taskroom.infrastructure.local.database import ScheduleEntryORM, get_session_factory
from taskroom.interfaces.schedule_entry_repository import IScheduleEntryRepository
from taskroom.models.enums import ScheduleBucket, ScheduleSource
from taskroom.models.schedule import ScheduleEntry, ScheduleEntryUpsert
from taskroom.services.bucket_classifier import classify
from taskroom.utils.datetime_utils import now_utc


class SqliteScheduleEntryRepository(IScheduleEntryRepository):
    """SQLite implementation of schedule entry repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ScheduleEntryORM) -> ScheduleEntry:
        """Convert ORM object to Pydantic model."""
        return ScheduleEntry(
            id=UUID(orm.id),
            room_id=orm.room_id,
            task_id=UUID(orm.task_id),
            date=date.fromisoformat(orm.date),
            start_minute=orm.start_minute,
            end_minute=orm.end_minute,
            bucket=ScheduleBucket(orm.bucket),
            confidence=orm.confidence,
            source=ScheduleSource(orm.source),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def upsert(self, entry: ScheduleEntryUpsert) -> ScheduleEntry:
        """Insert or update by (room_id, task_id, date) in one statement."""
        now = now_utc()
        values = {
            "room_id": entry.room_id,
            "task_id": str(entry.task_id),
            "date": entry.date.isoformat(),
            "start_minute": entry.start_minute,
            "end_minute": entry.end_minute,
            "bucket": classify(entry.start_minute).value,
            "confidence": entry.confidence,
            "source": entry.source.value,
        }
        stmt = sqlite_insert(ScheduleEntryORM).values(
            id=str(uuid4()),
            created_at=now,
            updated_at=now,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["room_id", "task_id", "date"],
            set_={
                "start_minute": stmt.excluded.start_minute,
                "end_minute": stmt.excluded.end_minute,
                "bucket": stmt.excluded.bucket,
                "confidence": stmt.excluded.confidence,
                "source": stmt.excluded.source,
                "updated_at": now,
            },
        )
        async with self._session_factory() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(
                    f"Failed to upsert schedule entry for task {entry.task_id}: {exc}"
                ) from exc
            result = await session.execute(
                select(ScheduleEntryORM).where(
                    ScheduleEntryORM.room_id == values["room_id"],
                    ScheduleEntryORM.task_id == values["task_id"],
                    ScheduleEntryORM.date == values["date"],
                )
            )
            orm = result.scalar_one()
            # The same session may hold a stale identity-map copy of the row.
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, entry_id: UUID) -> Optional[ScheduleEntry]:
        """Get an entry by ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleEntryORM).where(ScheduleEntryORM.id == str(entry_id))
                .execution_options(populate_existing=True)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def update_times(
        self,
        entry_id: UUID,
        start_minute: Optional[int],
        end_minute: Optional[int],
        source: ScheduleSource,
    ) -> ScheduleEntry:
        """Move an entry; bucket follows the new start."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleEntryORM).where(ScheduleEntryORM.id == str(entry_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Schedule entry {entry_id} not found")
            orm.start_minute = start_minute
            orm.end_minute = end_minute
            orm.bucket = classify(start_minute).value
            orm.source = source.value
            orm.updated_at = now_utc()
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to update schedule entry {entry_id}: {exc}") from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def list_by_room_date(self, room_id: str, plan_date: date) -> list[ScheduleEntry]:
        """List entries of a room's day, by start minute with unscheduled last."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ScheduleEntryORM)
                .where(
                    ScheduleEntryORM.room_id == room_id,
                    ScheduleEntryORM.date == plan_date.isoformat(),
                )
                .order_by(
                    ScheduleEntryORM.start_minute.is_(None),
                    ScheduleEntryORM.start_minute.asc(),
                    ScheduleEntryORM.created_at.asc(),
                )
                .execution_options(populate_existing=True)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def delete_by_room_date(self, room_id: str, plan_date: date) -> int:
        """Delete a room's day."""
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    delete(ScheduleEntryORM).where(
                        ScheduleEntryORM.room_id == room_id,
                        ScheduleEntryORM.date == plan_date.isoformat(),
                    )
                )
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(
                    f"Failed to clear schedule for room {room_id} on {plan_date}: {exc}"
                ) from exc
            return result.rowcount or 0

    async def delete_by_id(self, entry_id: UUID) -> bool:
        """Delete one entry."""
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    delete(ScheduleEntryORM).where(ScheduleEntryORM.id == str(entry_id))
                )
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to delete schedule entry {entry_id}: {exc}") from exc
            return bool(result.rowcount)

    async def delete_by_task(self, task_id: UUID) -> int:
        """Delete every entry of a task."""
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    delete(ScheduleEntryORM).where(ScheduleEntryORM.task_id == str(task_id))
                )
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to delete entries of task {task_id}: {exc}") from exc
            return result.rowcount or 0
