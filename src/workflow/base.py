"""Shared plumbing for workflow runs."""

from core import get_logger
from models.events import EventPayload, LifecycleEvent, Topic
from store import FrameStore
from streaming import EventBus

from .checkpoint import CheckpointStore
from .steps import RetryPolicy, StepRunner

logger = get_logger(__name__)


class Workflow:
    """Base for orchestrators: store, bus, checkpoints and retry policy."""

    name = "workflow"

    def __init__(
        self,
        store: FrameStore,
        bus: EventBus,
        checkpoints: CheckpointStore,
        policy: RetryPolicy | None = None,
    ) -> None:
        self.store = store
        self.bus = bus
        self.checkpoints = checkpoints
        self.policy = policy or RetryPolicy()

    def runner(self, run_id: str) -> StepRunner:
        return StepRunner(run_id, self.checkpoints, self.policy)

    async def publish(self, channel: str, topic: Topic, payload: EventPayload) -> LifecycleEvent:
        event = await self.bus.publish(channel, topic, payload)
        logger.info("lifecycle_event", workflow=self.name, topic=topic.value)
        return event
