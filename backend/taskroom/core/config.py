"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
"""

from functools import lru_cache
from typing import List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local"] = "local"
    DEBUG: bool = False

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./taskroom.db"

    # ===========================================
    # Scheduling
    # ===========================================
    # Single zone used for bucket semantics and passed to the extraction prompt
    TIMEZONE: str = "Asia/Shanghai"

    # Deadline for one extraction call (seconds)
    EXTRACTION_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Used when a suggestion has a start but no usable end
    DEFAULT_TASK_DURATION_MINUTES: int = Field(default=60, ge=15, le=720)

    # Keep USER-sourced entries when a day is re-scheduled
    PRESERVE_USER_EDITS: bool = True

    # ===========================================
    # LLM Configuration
    # ===========================================
    # LLM Provider: "gemini-api" | "litellm"
    # - gemini-api: Gemini API (API Key)
    # - litellm: LiteLLM (Bedrock, OpenAI, etc. with optional custom endpoint)
    LLM_PROVIDER: Literal["gemini-api", "litellm"] = "gemini-api"

    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GOOGLE_API_KEY: str = ""

    LITELLM_MODEL: str = "openai/gpt-4o-mini"
    LITELLM_API_BASE: str = ""
    LITELLM_API_KEY: str = ""

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    @field_validator("TIMEZONE")
    @classmethod
    def timezone_must_exist(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
