"""
Shared fixtures.
"""

import asyncio
import json
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from taskroom.interfaces.llm_provider import ILLMProvider


class FakeLLMProvider(ILLMProvider):
    """Returns canned output and records prompts."""

    def __init__(self, output=None, error: Optional[Exception] = None, delay: float = 0.0):
        if output is not None and not isinstance(output, str):
            output = json.dumps(output)
        self.output = output
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    def get_model_name(self) -> str:
        return "fake-model"

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.1,
    ) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
async def session_factory():
    """In-memory SQLite session factory with all tables created."""
    from taskroom.infrastructure.local.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def fake_llm():
    """Factory for canned LLM providers."""
    return FakeLLMProvider


@pytest.fixture
def room_id() -> str:
    return "room-1"
