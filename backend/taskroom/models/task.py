"""
Task model definitions.

Tasks are free-text to-do items shared by everyone in a room.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class TaskBase(BaseModel):
    """Base task fields shared across create/read."""

    content: str = Field(..., min_length=1, max_length=1000, description="Task text")
    scheduled_time: Optional[str] = Field(
        None,
        max_length=100,
        description="Legacy/manual time annotation, e.g. '9am' or 'evening'",
    )

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("content must not be blank")
        return stripped


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    pass


class TaskCompletionUpdate(BaseModel):
    """Schema for marking a task done or not done."""

    completed: bool


class TaskTimeHintUpdate(BaseModel):
    """Schema for replacing a task's time annotation."""

    scheduled_time: Optional[str] = Field(None, max_length=100)


class Task(TaskBase):
    """Complete task model with all fields."""

    id: UUID
    room_id: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
