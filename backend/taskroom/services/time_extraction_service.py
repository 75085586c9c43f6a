"""
Client for the external time-extraction service.

The model is treated as an opaque classifier: its output is parsed and fully
schema-validated before anything downstream sees it.
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from taskroom.agents.prompts.time_extraction_prompt import (
    TIME_EXTRACTION_PROMPT_TEMPLATE,
    TIME_EXTRACTION_SYSTEM_PROMPT,
)
from taskroom.core.exceptions import ExtractionFormatError, ExtractionUnavailableError
from taskroom.core.logger import setup_logger
from taskroom.interfaces.llm_provider import ILLMProvider
from taskroom.models.time_extraction import (
    ExtractionResult,
    TimeExtractionRequest,
    TimeExtractionResponse,
    TimeSuggestion,
)

logger = setup_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_extraction_output(raw_output: Optional[str]) -> ExtractionResult:
    """Validate raw model output against the response schema."""
    if not raw_output or not raw_output.strip():
        return ExtractionResult.failure("empty response")
    try:
        payload = json.loads(_strip_code_fence(raw_output))
    except json.JSONDecodeError as exc:
        return ExtractionResult.failure(f"invalid JSON: {exc.msg}")
    if not isinstance(payload, dict):
        return ExtractionResult.failure("top-level value is not an object")
    try:
        response = TimeExtractionResponse.model_validate(payload)
    except PydanticValidationError as exc:
        return ExtractionResult.failure(f"schema mismatch: {exc.error_count()} error(s)")
    return ExtractionResult.success(response.schedules)


def build_prompt(request: TimeExtractionRequest) -> str:
    tasks_json = json.dumps(
        [task.model_dump(by_alias=True, exclude_none=True) for task in request.tasks],
        ensure_ascii=False,
        indent=2,
    )
    return TIME_EXTRACTION_PROMPT_TEMPLATE.format(
        date=request.date.isoformat(),
        timezone=request.timezone,
        tasks_json=tasks_json,
    )


class TimeExtractionService:
    """Obtains per-task time suggestions for one day."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._llm_provider = llm_provider
        self._timeout_seconds = timeout_seconds

    async def extract(self, request: TimeExtractionRequest) -> list[TimeSuggestion]:
        """
        Call the model once for the whole task set.

        Raises:
            ExtractionUnavailableError: Provider failure, timeout or empty output
            ExtractionFormatError: Output is not the expected schema
        """
        prompt = build_prompt(request)
        try:
            raw_output = await asyncio.wait_for(
                self._llm_provider.generate(
                    prompt,
                    system_instruction=TIME_EXTRACTION_SYSTEM_PROMPT,
                ),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                f"Time extraction timed out after {self._timeout_seconds}s "
                f"({self._llm_provider.get_model_name()})"
            )
            raise ExtractionUnavailableError("Time extraction timed out") from exc
        except Exception as exc:
            logger.warning(f"Time extraction request failed: {exc}")
            raise ExtractionUnavailableError(
                f"Time extraction request failed: {type(exc).__name__}"
            ) from exc

        if not raw_output or not raw_output.strip():
            raise ExtractionUnavailableError("Time extraction returned an empty response")

        result = parse_extraction_output(raw_output)
        if not result.ok:
            logger.warning(f"Rejected time extraction output: {result.error}")
            raise ExtractionFormatError(
                f"Time extraction output rejected: {result.error}",
                raw_output=raw_output,
            )
        return result.schedules
