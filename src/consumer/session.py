"""Workflow consumer: drives the canvas reducer from a channel subscription."""

import asyncio
from collections.abc import Callable

from core import get_logger
from models.domain import JobStatus
from models.events import LifecycleEvent
from store import FrameStore
from streaming import EventBus, Subscription, channel_for_user

from .reducer import CanvasState, expire, initial_state, reduce, settle

logger = get_logger(__name__)

Listener = Callable[[CanvasState], None]


class WorkflowConsumer:
    """
    Client-side view of one project's generation progress.

    Bootstraps from the Frame Store, then follows the user's channel. The
    store stays authoritative: ``resync()`` reloads from it whenever events
    may have been missed.
    """

    def __init__(
        self,
        bus: EventBus,
        store: FrameStore,
        user_id: str,
        project_id: str,
        reset_delay: float = 0.1,
        watchdog_timeout: float | None = 300.0,
    ) -> None:
        self.bus = bus
        self.store = store
        self.user_id = user_id
        self.project_id = project_id
        self.reset_delay = reset_delay
        self.watchdog_timeout = watchdog_timeout

        self.state = CanvasState(project_id=project_id)
        self._subscription: Subscription | None = None
        self._pump: asyncio.Task | None = None
        self._reset_handle: asyncio.TimerHandle | None = None
        self._watchdog_handle: asyncio.TimerHandle | None = None
        self._listeners: list[Listener] = []
        self._waiters: list[tuple[Callable[[CanvasState], bool], asyncio.Future]] = []

    @property
    def status(self) -> JobStatus:
        return self.state.status

    async def start(self) -> CanvasState:
        """
        Load initial state and start following the channel.

        The subscription is opened before the store is read, so events
        published during the load are buffered and applied on top of it.
        """
        self._subscription = self.bus.subscribe(channel_for_user(self.user_id))
        try:
            frames = await self.store.find_frames_by_project(self.project_id)
            theme = await self.store.get_project_theme(self.project_id)
        except Exception:
            self._subscription.close()
            self._subscription = None
            raise
        self._set_state(initial_state(self.project_id, frames, theme))

        self._pump = asyncio.create_task(self._consume(self._subscription))
        self._arm_watchdog()

        logger.info("consumer_started", project_id=self.project_id, frames=len(frames), status=self.status.value)
        return self.state

    async def close(self) -> None:
        self._cancel_timers()
        if self._subscription is not None:
            self._subscription.close()
        if self._pump is not None:
            await self._pump
            self._pump = None
        for _, future in self._waiters:
            if not future.done():
                future.cancel()
        self._waiters.clear()

    async def __aenter__(self) -> "WorkflowConsumer":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def _consume(self, subscription: Subscription) -> None:
        async for event in subscription:
            self.apply(event)

    def apply(self, event: LifecycleEvent) -> CanvasState:
        """Reduce one event and schedule the timers its result implies."""
        previous = self.state
        state = reduce(previous, event)
        if state is previous:
            return state

        if state.status != previous.status:
            logger.debug("status_changed", old=previous.status.value, new=state.status.value, topic=event.topic.value)
        self._set_state(state)

        if state.status == JobStatus.COMPLETED and previous.status != JobStatus.COMPLETED:
            self._schedule_reset()
        self._arm_watchdog()
        return state

    async def resync(self) -> CanvasState:
        """Reload frames and theme from the store; unfinished skeletons are dropped."""
        frames = await self.store.find_frames_by_project(self.project_id)
        theme = await self.store.get_project_theme(self.project_id)
        self._set_state(
            self.state.model_copy(
                update={"frames": tuple(frames), "theme_id": theme, "skeleton_ids": frozenset()}
            )
        )
        logger.info("consumer_resynced", project_id=self.project_id, frames=len(frames))
        return self.state

    async def wait_for(
        self, predicate: Callable[[CanvasState], bool], timeout: float | None = None
    ) -> CanvasState:
        """Wait until ``predicate(state)`` holds."""
        if predicate(self.state):
            return self.state
        future = asyncio.get_running_loop().create_future()
        waiter = (predicate, future)
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def wait_for_status(self, *statuses: JobStatus, timeout: float | None = None) -> CanvasState:
        return await self.wait_for(lambda s: s.status in statuses, timeout)

    def _set_state(self, state: CanvasState) -> None:
        self.state = state
        for predicate, future in list(self._waiters):
            if not future.done() and predicate(state):
                future.set_result(state)
        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                # one broken listener must not stop the consumer
                logger.error(
                    "consumer_listener_failed", project_id=self.project_id, listener=repr(listener), exc_info=True
                )

    def _schedule_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self.reset_delay, self._on_reset)

    def _on_reset(self) -> None:
        self._reset_handle = None
        self._set_state(settle(self.state))

    def _arm_watchdog(self) -> None:
        if self._watchdog_handle is not None:
            self._watchdog_handle.cancel()
            self._watchdog_handle = None
        if self.watchdog_timeout is None or not self.state.is_active:
            return
        loop = asyncio.get_running_loop()
        self._watchdog_handle = loop.call_later(self.watchdog_timeout, self._on_watchdog)

    def _on_watchdog(self) -> None:
        self._watchdog_handle = None
        if not self.state.is_active:
            return
        logger.warning(
            "consumer_watchdog_expired",
            project_id=self.project_id,
            status=self.status.value,
            timeout=self.watchdog_timeout,
        )
        self._set_state(expire(self.state, f"No progress for {self.watchdog_timeout:g}s"))

    def _cancel_timers(self) -> None:
        for handle in (self._reset_handle, self._watchdog_handle):
            if handle is not None:
                handle.cancel()
        self._reset_handle = None
        self._watchdog_handle = None


class ConsumerFactory:
    """Builds consumers with the configured reset delay and watchdog timeout."""

    def __init__(
        self,
        bus: EventBus,
        store: FrameStore,
        reset_delay: float = 0.1,
        watchdog_timeout: float | None = 300.0,
    ) -> None:
        self.bus = bus
        self.store = store
        self.reset_delay = reset_delay
        self.watchdog_timeout = watchdog_timeout

    def __call__(self, user_id: str, project_id: str) -> WorkflowConsumer:
        return WorkflowConsumer(
            self.bus,
            self.store,
            user_id,
            project_id,
            reset_delay=self.reset_delay,
            watchdog_timeout=self.watchdog_timeout,
        )
