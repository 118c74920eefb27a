"""Lifecycle events published on the per-user channel."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from .domain import Frame, ScreenSpec, WireModel


class Topic(str, Enum):
    """Event kinds."""

    GENERATION_START = "generation.start"
    ANALYSIS_START = "analysis.start"
    ANALYSIS_COMPLETE = "analysis.complete"
    FRAME_CREATED = "frame.created"
    GENERATION_COMPLETE = "generation.complete"
    GENERATION_ERROR = "generation.error"

    REGENERATION_START = "regeneration.start"
    FRAME_REGENERATED = "frame.regenerated"
    REGENERATION_COMPLETE = "regeneration.complete"
    REGENERATION_ERROR = "regeneration.error"


class EventPayload(WireModel):
    """Payload shared by all topics; unused fields stay None."""

    project_id: str
    run_id: str | None = None
    status: str | None = None
    theme: str | None = None
    total_screens: int | None = None
    screens: list[ScreenSpec] | None = None
    frame: Frame | None = None
    screen_id: str | None = None
    frame_id: str | None = None
    error: str | None = None


class LifecycleEvent(WireModel):
    """One message on the event channel."""

    channel: str
    topic: Topic
    payload: EventPayload
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
