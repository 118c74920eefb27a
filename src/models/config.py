"""
Model configuration with strong typing.
Centralized settings for the Gemini chat model used by planner and renderer.
"""

from enum import Enum
import os

from pydantic import BaseModel, ConfigDict, Field


class GeminiModel(str, Enum):
    """Known Gemini model variants."""

    PRO = "gemini-2.5-pro"  # Planning and rendering (default)
    FLASH = "gemini-2.5-flash"  # Faster, lower fidelity markup
    FLASH_LITE = "gemini-2.5-flash-lite"


class GeminiConfig(BaseModel):
    """Type-safe Gemini API configuration."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    model_name: str = Field(default=GeminiModel.PRO.value)
    api_key: str | None = Field(default=None)

    # Generation parameters
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8192, ge=1, le=65536)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    top_k: int = Field(default=40, ge=1, le=100)

    # Transport-level retries; workflow steps retry on their own
    max_retries: int = Field(default=0, ge=0)

    def __init__(self, **data):
        """Initialize config with API key from environment if not provided."""
        if data.get("api_key") is None:
            data["api_key"] = os.getenv("GOOGLE_API_KEY")
        super().__init__(**data)

    @property
    def is_flash_model(self) -> bool:
        return "flash" in self.model_name.lower()
