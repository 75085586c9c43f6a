"""
Unit tests for the time extraction client and its output parser.
"""

import json
from datetime import date

import pytest

from taskroom.core.exceptions import ExtractionFormatError, ExtractionUnavailableError
from taskroom.models.time_extraction import ExtractionTaskInput, TimeExtractionRequest
from taskroom.services.time_extraction_service import (
    TimeExtractionService,
    build_prompt,
    parse_extraction_output,
)


def _request() -> TimeExtractionRequest:
    return TimeExtractionRequest(
        date=date(2025, 3, 10),
        timezone="Asia/Shanghai",
        tasks=[
            ExtractionTaskInput(task_id="a", text="Gym at 9am"),
            ExtractionTaskInput(task_id="b", text="下午开会", hint="afternoon"),
        ],
    )


VALID_OUTPUT = {
    "schedules": [
        {"taskId": "a", "startMinute": 540, "endMinute": 600, "bucket": "MORNING", "confidence": 0.9},
        {"taskId": "b", "startMinute": None, "endMinute": None, "bucket": "UNSCHEDULED", "confidence": 0.3},
    ]
}


def test_parse_valid_output():
    result = parse_extraction_output(json.dumps(VALID_OUTPUT))

    assert result.ok is True
    assert [s.task_id for s in result.schedules] == ["a", "b"]
    assert result.schedules[0].start_minute == 540
    assert result.schedules[1].start_minute is None


def test_parse_strips_markdown_fence():
    raw = "```json\n" + json.dumps(VALID_OUTPUT) + "\n```"

    result = parse_extraction_output(raw)

    assert result.ok is True
    assert len(result.schedules) == 2


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "[]",
        json.dumps({"items": []}),
        # missing confidence
        json.dumps({"schedules": [{"taskId": "a", "startMinute": 540, "endMinute": 600, "bucket": "MORNING"}]}),
        # missing endMinute key entirely
        json.dumps({"schedules": [{"taskId": "a", "startMinute": 540, "bucket": "MORNING", "confidence": 0.9}]}),
        # out of range minute
        json.dumps({"schedules": [{"taskId": "a", "startMinute": 1500, "endMinute": 1560, "bucket": "NIGHT", "confidence": 0.9}]}),
        # confidence above 1
        json.dumps({"schedules": [{"taskId": "a", "startMinute": 540, "endMinute": 600, "bucket": "MORNING", "confidence": 1.5}]}),
    ],
)
def test_parse_rejects_malformed_output(raw):
    result = parse_extraction_output(raw)

    assert result.ok is False
    assert result.error


def test_build_prompt_includes_tasks_and_zone():
    prompt = build_prompt(_request())

    assert "2025-03-10" in prompt
    assert "Asia/Shanghai" in prompt
    assert '"taskId": "a"' in prompt
    assert "下午开会" in prompt
    assert '"hint": "afternoon"' in prompt


@pytest.mark.asyncio
async def test_extract_returns_suggestions(fake_llm):
    provider = fake_llm(VALID_OUTPUT)
    service = TimeExtractionService(provider)

    suggestions = await service.extract(_request())

    assert len(provider.prompts) == 1
    assert suggestions[0].task_id == "a"
    assert suggestions[0].confidence == 0.9


@pytest.mark.asyncio
async def test_extract_format_error_keeps_raw_output(fake_llm):
    provider = fake_llm("{\"schedules\": \"nope\"}")
    service = TimeExtractionService(provider)

    with pytest.raises(ExtractionFormatError) as exc_info:
        await service.extract(_request())

    assert exc_info.value.raw_output == "{\"schedules\": \"nope\"}"


@pytest.mark.asyncio
async def test_extract_provider_failure_is_unavailable(fake_llm):
    provider = fake_llm(error=RuntimeError("quota exceeded"))
    service = TimeExtractionService(provider)

    with pytest.raises(ExtractionUnavailableError):
        await service.extract(_request())


@pytest.mark.asyncio
async def test_extract_empty_output_is_unavailable(fake_llm):
    service = TimeExtractionService(fake_llm("   "))

    with pytest.raises(ExtractionUnavailableError):
        await service.extract(_request())


@pytest.mark.asyncio
async def test_extract_timeout_is_unavailable(fake_llm):
    service = TimeExtractionService(fake_llm("{}", delay=1.0), timeout_seconds=0.01)

    with pytest.raises(ExtractionUnavailableError, match="timed out"):
        await service.extract(_request())
