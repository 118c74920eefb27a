"""Durable generation workflows."""

from .checkpoint import CheckpointStore, FileCheckpointStore, InMemoryCheckpointStore
from .steps import RetryPolicy, StepRunner
from .base import Workflow
from .generation import GenerationWorkflow
from .regeneration import RegenerationWorkflow

__all__ = [
    "CheckpointStore",
    "FileCheckpointStore",
    "InMemoryCheckpointStore",
    "RetryPolicy",
    "StepRunner",
    "Workflow",
    "GenerationWorkflow",
    "RegenerationWorkflow",
]
