"""
Gemini API provider.

Uses Gemini API with API Key (no GCP project required).
"""

from typing import Optional

from google import genai
from google.genai.types import Content, GenerateContentConfig, Part

from taskroom.core.config import get_settings
from taskroom.interfaces.llm_provider import ILLMProvider


class GeminiAPIProvider(ILLMProvider):
    """Gemini API provider using API Key."""

    def __init__(self, model_name: str, api_key: Optional[str] = None):
        """
        Initialize Gemini API provider.

        Args:
            model_name: Gemini model name (e.g., "gemini-2.5-flash-lite")
            api_key: Overrides GOOGLE_API_KEY from settings
        """
        self._model_name = model_name
        self._settings = get_settings()
        self._api_key = api_key or self._settings.GOOGLE_API_KEY

        if not self._api_key:
            raise ValueError(
                "GOOGLE_API_KEY is required for Gemini API provider. "
                "Get your API key from https://aistudio.google.com/apikey"
            )
        self._client = genai.Client(api_key=self._api_key)

    def get_model_name(self) -> str:
        """Get human-readable model name."""
        return f"Gemini API ({self._model_name})"

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.1,
    ) -> str:
        config_kwargs: dict = {
            "temperature": temperature,
            "response_mime_type": "application/json",
        }
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction

        response = await self._client.aio.models.generate_content(
            model=self._model_name,
            contents=[Content(role="user", parts=[Part(text=prompt)])],
            config=GenerateContentConfig(**config_kwargs),
        )
        return (response.text or "").strip()
