"""
Schedule entry repository interface.

A keyed store with one row per (room, task, date).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from taskroom.models.enums import ScheduleSource
from taskroom.models.schedule import ScheduleEntry, ScheduleEntryUpsert


class IScheduleEntryRepository(ABC):
    """Abstract interface for schedule entry persistence."""

    @abstractmethod
    async def upsert(self, entry: ScheduleEntryUpsert) -> ScheduleEntry:
        """
        Insert or update the entry keyed by (room_id, task_id, date).

        The bucket is derived from start_minute. Each call commits on its own.

        Raises:
            PersistenceError: On storage failure
        """
        pass

    @abstractmethod
    async def get(self, entry_id: UUID) -> Optional[ScheduleEntry]:
        """Get an entry by ID, or None."""
        pass

    @abstractmethod
    async def update_times(
        self,
        entry_id: UUID,
        start_minute: Optional[int],
        end_minute: Optional[int],
        source: ScheduleSource,
    ) -> ScheduleEntry:
        """
        Set an entry's start/end and source; the bucket is recomputed.

        Raises:
            NotFoundError: If entry doesn't exist
            PersistenceError: On storage failure
        """
        pass

    @abstractmethod
    async def list_by_room_date(self, room_id: str, plan_date: date) -> list[ScheduleEntry]:
        """
        List a room's entries for one date.

        Returns:
            Entries ordered by start_minute ascending, unscheduled last
        """
        pass

    @abstractmethod
    async def delete_by_room_date(self, room_id: str, plan_date: date) -> int:
        """Delete every entry of a room's day. Returns the number removed."""
        pass

    @abstractmethod
    async def delete_by_id(self, entry_id: UUID) -> bool:
        """Delete one entry. Returns True if it existed."""
        pass

    @abstractmethod
    async def delete_by_task(self, task_id: UUID) -> int:
        """Delete all entries of a task across dates. Returns the number removed."""
        pass
