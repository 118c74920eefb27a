"""Error taxonomy for generation workflows."""

from typing import Any


class GenerationError(Exception):
    """Base class for workflow errors."""


class NonRetryableError(GenerationError):
    """Raised from a step to abort it without further attempts."""


class StepFailedError(GenerationError):
    """A workflow step exhausted its retry budget (or hit a non-retryable error)."""

    def __init__(self, step: str, attempts: int, cause: BaseException) -> None:
        super().__init__(f"Step '{step}' failed after {attempts} attempt(s): {cause}")
        self.step = step
        self.attempts = attempts
        self.cause = cause


class FrameNotFoundError(NonRetryableError):
    """Frame id does not exist in the store."""

    def __init__(self, frame_id: str) -> None:
        super().__init__(f"Frame not found: {frame_id}")
        self.frame_id = frame_id


class ProjectNotFoundError(NonRetryableError):
    """Project id does not exist in the store."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class PlanParseError(GenerationError):
    """Planner output could not be turned into a GenerationPlan."""


class RenderError(GenerationError):
    """Renderer produced no usable markup."""


class ValidationError(GenerationError):
    """Enqueue message failed validation."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class JobInProgressError(GenerationError):
    """A generation run is already active for the project."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Generation already in progress for project {project_id}")
        self.project_id = project_id
