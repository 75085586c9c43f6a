"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from taskroom.core.exceptions import NotFoundError, PersistenceError
from taskroom.infrastructure.local.database import (
    ScheduleEntryORM,
    TaskORM,
    get_session_factory,
)
from taskroom.interfaces.task_repository import ITaskRepository
from taskroom.models.task import Task, TaskCreate
from taskroom.utils.datetime_utils import now_utc


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TaskORM) -> Task:
        """Convert ORM object to Pydantic model."""
        return Task(
            id=UUID(orm.id),
            room_id=orm.room_id,
            content=orm.content,
            scheduled_time=orm.scheduled_time,
            completed=bool(orm.completed),
            completed_at=orm.completed_at,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, room_id: str, task: TaskCreate) -> Task:
        """Create a new task."""
        async with self._session_factory() as session:
            now = now_utc()
            orm = TaskORM(
                id=str(uuid4()),
                room_id=room_id,
                content=task.content,
                scheduled_time=task.scheduled_time,
                completed=False,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to create task: {exc}") from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(TaskORM.id == str(task_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_by_room(self, room_id: str) -> list[Task]:
        """List a room's tasks, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM)
                .where(TaskORM.room_id == room_id)
                .order_by(TaskORM.created_at.asc(), TaskORM.id.asc())
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update_time_hint(self, task_id: UUID, scheduled_time: Optional[str]) -> Task:
        """Replace a task's time annotation."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(TaskORM.id == str(task_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Task {task_id} not found")
            orm.scheduled_time = scheduled_time
            orm.updated_at = now_utc()
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to update task {task_id}: {exc}") from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def set_completed(self, task_id: UUID, completed: bool) -> Task:
        """Mark a task done or not done."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(TaskORM.id == str(task_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Task {task_id} not found")
            now = now_utc()
            orm.completed = completed
            orm.completed_at = now if completed else None
            orm.updated_at = now
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to update task {task_id}: {exc}") from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, task_id: UUID) -> bool:
        """Delete a task and its schedule entries."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(TaskORM.id == str(task_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return False
            # SQLite only enforces ON DELETE CASCADE with PRAGMA foreign_keys
            await session.execute(
                delete(ScheduleEntryORM).where(ScheduleEntryORM.task_id == str(task_id))
            )
            await session.delete(orm)
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Failed to delete task {task_id}: {exc}") from exc
            return True
