"""Configuration Management."""

import os
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="MOCKUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Server
    host: str = Field(default="0.0.0.0", description="HTTP bind host")
    port: int = Field(default=8010, gt=0, description="HTTP bind port")

    # Model
    gemini_api_key: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_API_KEY", ""), description="Gemini API key"
    )
    gemini_model: str = Field(default="gemini-2.5-pro", description="Model for planning and rendering")
    gemini_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Model temperature")
    gemini_max_tokens: int = Field(default=8192, gt=0, description="Max output tokens")

    # Image lookup
    unsplash_access_key: str = Field(
        default_factory=lambda: os.getenv("UNSPLASH_ACCESS_KEY", ""),
        description="Unsplash API access key",
    )
    unsplash_url: str = Field(default="https://api.unsplash.com", description="Unsplash API base URL")
    image_timeout: float = Field(default=5.0, gt=0, description="Image search request timeout")
    image_cache_size: int = Field(default=256, gt=0, description="Image search cache max size")
    image_cache_ttl: int = Field(default=3600, gt=0, description="Image search cache TTL (seconds)")

    # Workflow
    step_max_attempts: int = Field(default=4, gt=0, description="Attempts per workflow step")
    step_retry_base_delay: float = Field(default=1.0, ge=0.0, description="First retry delay (seconds)")
    step_retry_max_delay: float = Field(default=30.0, ge=0.0, description="Retry delay cap (seconds)")
    checkpoint_dir: str | None = Field(default=None, description="Directory for step checkpoints")
    renderer_max_steps: int = Field(default=5, gt=0, description="Model turns per screen (tool loop)")

    # Realtime
    subscriber_queue_size: int = Field(default=256, gt=0, description="Buffered events per subscriber")
    completed_reset_delay: float = Field(default=0.1, ge=0.0, description="Delay before completed -> idle")
    consumer_watchdog_timeout: float = Field(
        default=300.0, gt=0, description="Silence before a running job is marked failed"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
