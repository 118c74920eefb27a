"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .logging_config import configure_logging, get_logger, LogContext
from .errors import (
    GenerationError,
    NonRetryableError,
    StepFailedError,
    FrameNotFoundError,
    ProjectNotFoundError,
    PlanParseError,
    RenderError,
    ValidationError,
    JobInProgressError,
)
from .json import extract_json, JSONParseError
from .markup import extract_screen_markup
from .hash import Algorithm, hash_string, hash_bytes, hash_fields
from .cache import LRUCache, Stats


def create_container(settings: Settings | None = None, **overrides):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings, **overrides)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # Errors
    "GenerationError",
    "NonRetryableError",
    "StepFailedError",
    "FrameNotFoundError",
    "ProjectNotFoundError",
    "PlanParseError",
    "RenderError",
    "ValidationError",
    "JobInProgressError",
    # JSON / markup
    "extract_json",
    "JSONParseError",
    "extract_screen_markup",
    # Hashing
    "Algorithm",
    "hash_string",
    "hash_bytes",
    "hash_fields",
    # Caching
    "LRUCache",
    "Stats",
    # DI
    "create_container",
]
