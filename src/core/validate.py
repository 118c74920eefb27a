"""Enqueue message validation."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from returns.result import Failure, Result, Success

from models.domain import Frame


MAX_PROMPT_LENGTH = 10_000
MAX_EXISTING_FRAMES = 200


@dataclass(frozen=True)
class ValidationResult:
    """Validation failure with details (for the Result pattern)."""

    message: str
    details: tuple[dict[str, Any], ...] = ()


class JobMessage(BaseModel):
    """Base for enqueue messages (camelCase keys, immutable)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True
    )

    user_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    prompt: str = Field(min_length=1, max_length=MAX_PROMPT_LENGTH)

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Prompt cannot be empty")
        return stripped


class GenerationJob(JobMessage):
    """Main generation request. ``frames``/``theme`` are as read at enqueue time."""

    frames: list[Frame] = Field(default_factory=list, max_length=MAX_EXISTING_FRAMES)
    theme: str | None = None


class RegenerationJob(JobMessage):
    """Single-frame regeneration request."""

    frame_id: str = Field(min_length=1)
    theme: str | None = None
    existing_frames: list[Frame] = Field(default_factory=list, max_length=MAX_EXISTING_FRAMES)


def _parse(model: type[BaseModel], data: Any) -> Result[Any, ValidationResult]:
    if isinstance(data, model):
        return Success(data)
    if not isinstance(data, dict):
        return Failure(ValidationResult(f"Expected an object, got {type(data).__name__}"))
    try:
        return Success(model.model_validate(data))
    except PydanticValidationError as e:
        details = tuple(
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        )
        return Failure(ValidationResult(f"Invalid {model.__name__}", details))


def parse_generation_job(data: Any) -> Result[GenerationJob, ValidationResult]:
    """Validate a main generation enqueue message."""
    return _parse(GenerationJob, data)


def parse_regeneration_job(data: Any) -> Result[RegenerationJob, ValidationResult]:
    """Validate a regeneration enqueue message."""
    return _parse(RegenerationJob, data)
