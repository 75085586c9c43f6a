"""
Wire models for the external time-extraction service.

Field names follow the service's camelCase JSON; Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from taskroom.utils.time_codec import MAX_MINUTE


class ExtractionTaskInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., alias="taskId")
    text: str
    hint: Optional[str] = None


class TimeExtractionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: date
    timezone: str
    tasks: list[ExtractionTaskInput] = Field(default_factory=list)


class TimeSuggestion(BaseModel):
    """One per-task suggestion. `bucket` is advisory and never stored as-is."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., alias="taskId", min_length=1)
    start_minute: Optional[int] = Field(..., alias="startMinute", ge=0, le=MAX_MINUTE)
    end_minute: Optional[int] = Field(..., alias="endMinute", ge=0, le=MAX_MINUTE)
    bucket: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class TimeExtractionResponse(BaseModel):
    schedules: list[TimeSuggestion]


@dataclass
class ExtractionResult:
    """Tagged parse result: ok with suggestions, or an error reason."""

    ok: bool
    schedules: list[TimeSuggestion] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def success(cls, schedules: list[TimeSuggestion]) -> "ExtractionResult":
        return cls(ok=True, schedules=schedules)

    @classmethod
    def failure(cls, reason: str) -> "ExtractionResult":
        return cls(ok=False, error=reason)
