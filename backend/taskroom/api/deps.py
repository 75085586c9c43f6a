"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends

from taskroom.core.config import get_settings
from taskroom.core.logger import logger
from taskroom.interfaces.llm_provider import ILLMProvider
from taskroom.interfaces.schedule_entry_repository import IScheduleEntryRepository
from taskroom.interfaces.task_repository import ITaskRepository
from taskroom.services.day_schedule_service import DayScheduleService
from taskroom.services.time_extraction_service import TimeExtractionService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from taskroom.infrastructure.local.task_repository import SqliteTaskRepository
    return SqliteTaskRepository()


@lru_cache()
def get_schedule_entry_repository() -> IScheduleEntryRepository:
    """Get schedule entry repository instance."""
    from taskroom.infrastructure.local.schedule_entry_repository import (
        SqliteScheduleEntryRepository,
    )
    return SqliteScheduleEntryRepository()


# ===========================================
# Provider Dependencies
# ===========================================


@lru_cache()
def get_llm_provider() -> ILLMProvider:
    """
    Get LLM provider instance based on LLM_PROVIDER setting.

    Supports:
    - gemini-api: Gemini API (API Key)
    - litellm: LiteLLM (Bedrock, OpenAI, etc. with optional custom endpoint)
    """
    settings = get_settings()

    if settings.LLM_PROVIDER == "gemini-api":
        from taskroom.infrastructure.local.gemini_api_provider import GeminiAPIProvider
        return GeminiAPIProvider(settings.GEMINI_MODEL)

    elif settings.LLM_PROVIDER == "litellm":
        from taskroom.infrastructure.local.litellm_provider import LiteLLMProvider
        return LiteLLMProvider(
            settings.LITELLM_MODEL,
            api_base=settings.LITELLM_API_BASE or None,
            api_key=settings.LITELLM_API_KEY or None,
        )

    else:
        raise ValueError(f"Unknown LLM_PROVIDER: {settings.LLM_PROVIDER}")


def get_time_extraction_service() -> Optional[TimeExtractionService]:
    """
    Get extraction client bound to the configured provider.

    Returns None when the provider cannot be built (missing API key or
    unknown provider). The scheduler then reports extraction as unavailable,
    but only for rooms that actually have tasks.
    """
    settings = get_settings()
    try:
        llm_provider = get_llm_provider()
    except ValueError as exc:
        logger.warning(f"Time extraction unavailable: {exc}")
        return None
    return TimeExtractionService(
        llm_provider,
        timeout_seconds=settings.EXTRACTION_TIMEOUT_SECONDS,
    )


def _build_day_schedule_service(
    task_repo: ITaskRepository,
    entry_repo: IScheduleEntryRepository,
    extraction_service: Optional[TimeExtractionService],
) -> DayScheduleService:
    settings = get_settings()
    return DayScheduleService(
        task_repo=task_repo,
        entry_repo=entry_repo,
        extraction_service=extraction_service,
        timezone=settings.TIMEZONE,
        default_duration_minutes=settings.DEFAULT_TASK_DURATION_MINUTES,
        preserve_user_edits=settings.PRESERVE_USER_EDITS,
    )


def get_day_schedule_service(
    task_repo: Annotated[ITaskRepository, Depends(get_task_repository)],
    entry_repo: Annotated[IScheduleEntryRepository, Depends(get_schedule_entry_repository)],
) -> DayScheduleService:
    """
    Get day scheduling service for reads and manual edits.

    Built without an extraction client so these paths never touch the LLM
    provider configuration.
    """
    return _build_day_schedule_service(task_repo, entry_repo, None)


def get_day_scheduler(
    task_repo: Annotated[ITaskRepository, Depends(get_task_repository)],
    entry_repo: Annotated[IScheduleEntryRepository, Depends(get_schedule_entry_repository)],
    extraction_service: Annotated[
        Optional[TimeExtractionService], Depends(get_time_extraction_service)
    ],
) -> DayScheduleService:
    """Get day scheduling service wired to time extraction."""
    return _build_day_schedule_service(task_repo, entry_repo, extraction_service)


# Type aliases for cleaner dependency injection
TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
DayScheduleSvc = Annotated[DayScheduleService, Depends(get_day_schedule_service)]
DayScheduler = Annotated[DayScheduleService, Depends(get_day_scheduler)]
