"""
Models package - domain types, lifecycle events and model loading.
"""

from .domain import (
    Frame,
    GenerationPlan,
    JobStatus,
    Project,
    ProjectSnapshot,
    ResolvedPlan,
    ScreenSpec,
)
from .events import EventPayload, LifecycleEvent, Topic
from .config import GeminiConfig, GeminiModel

__all__ = [
    # Domain
    "Frame",
    "GenerationPlan",
    "JobStatus",
    "Project",
    "ProjectSnapshot",
    "ResolvedPlan",
    "ScreenSpec",
    # Events
    "EventPayload",
    "LifecycleEvent",
    "Topic",
    # Model config
    "GeminiConfig",
    "GeminiModel",
]
