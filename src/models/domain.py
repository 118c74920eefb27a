"""Domain models: projects, frames and generation plans."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models that cross the event channel (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobStatus(str, Enum):
    """Client-visible job status."""

    IDLE = "idle"
    RUNNING = "running"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class Frame(WireModel):
    """One generated screen."""

    id: str
    project_id: str | None = None
    title: str
    html_content: str = ""
    x: float | None = None
    y: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Client-only: skeleton or regenerating
    is_loading: bool = False


class Project(WireModel):
    """A mockup project and its ordered frames."""

    id: str
    user_id: str
    name: str = "Untitled Project"
    theme: str | None = None
    frames: list[Frame] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ScreenSpec(WireModel):
    """Planner output for a single screen."""

    id: str = Field(..., min_length=1, description="kebab-case screen id, e.g. 'home-dashboard'")
    name: str = Field(..., min_length=1, description="Display name")
    purpose: str = Field(default="", description="One sentence on what the screen does")
    visual_description: str = Field(default="", description="Dense visual directive")


class GenerationPlan(WireModel):
    """Theme plus 1-4 screens to generate, in order."""

    theme: str = Field(..., min_length=1)
    screens: list[ScreenSpec] = Field(..., min_length=1, max_length=4)


class ProjectSnapshot(WireModel):
    """Authoritative project state read at the start of a run."""

    frames: list[Frame] = Field(default_factory=list)
    theme: str | None = None

    @property
    def is_continuation(self) -> bool:
        return len(self.frames) > 0


class ResolvedPlan(WireModel):
    """Plan after theme resolution; ``planner_theme`` keeps what the model chose."""

    theme: str
    screens: list[ScreenSpec]
    planner_theme: str
