"""Handlers for enqueued generation jobs."""

from .jobs import JobDispatcher

__all__ = ["JobDispatcher"]
