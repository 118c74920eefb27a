"""Client-side workflow consumer."""

from .reducer import CanvasState, expire, initial_state, reduce, settle
from .session import ConsumerFactory, WorkflowConsumer

__all__ = [
    "CanvasState",
    "ConsumerFactory",
    "WorkflowConsumer",
    "expire",
    "initial_state",
    "reduce",
    "settle",
]
