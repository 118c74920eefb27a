"""Realtime event channel."""

from .bus import EventBus, Subscription, channel_for_user

__all__ = ["EventBus", "Subscription", "channel_for_user"]
