"""Frame Store contract and implementations."""

from .base import FrameStore
from .memory import InMemoryFrameStore

__all__ = ["FrameStore", "InMemoryFrameStore"]
