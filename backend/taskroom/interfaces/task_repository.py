"""
Task repository interface.

Defines the contract for task persistence operations.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from taskroom.models.task import Task, TaskCreate


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def create(self, room_id: str, task: TaskCreate) -> Task:
        """
        Create a new task in a room.

        Args:
            room_id: Owning room ID
            task: Task creation data

        Returns:
            Created task with generated ID and timestamps
        """
        pass

    @abstractmethod
    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID, or None."""
        pass

    @abstractmethod
    async def list_by_room(self, room_id: str) -> list[Task]:
        """
        List a room's tasks.

        Returns:
            Tasks ordered by creation time (oldest first)
        """
        pass

    @abstractmethod
    async def update_time_hint(self, task_id: UUID, scheduled_time: Optional[str]) -> Task:
        """
        Replace a task's legacy time annotation.

        Raises:
            NotFoundError: If task doesn't exist
        """
        pass

    @abstractmethod
    async def set_completed(self, task_id: UUID, completed: bool) -> Task:
        """
        Mark a task done or not done.

        Completion does not remove the task from scheduling.

        Raises:
            NotFoundError: If task doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, task_id: UUID) -> bool:
        """
        Delete a task together with its schedule entries.

        Returns:
            True if deleted, False if not found
        """
        pass
