"""Regeneration Orchestrator - rewrites one frame in place."""

import time
from functools import partial

from agents import ScreenRenderer, theme_css
from agents.prompts import format_frames_context
from core import FrameNotFoundError, LogContext, StepFailedError, get_logger
from core.id import Prefix, new_run_id
from core.validate import RegenerationJob
from models.domain import Frame, JobStatus
from models.events import EventPayload, Topic
from monitoring import metrics_collector
from store import FrameStore
from streaming import EventBus, channel_for_user

from .base import Workflow
from .checkpoint import CheckpointStore
from .steps import RetryPolicy

logger = get_logger(__name__)

LOAD_STEP = "load-target-frame"
REGENERATE_STEP = "regenerate-frame"


class RegenerationWorkflow(Workflow):
    """
    Single-frame regeneration.

    Never touches the plan or other frames and never creates a frame id. A
    missing target is fatal and surfaced as ``regeneration.error``.
    """

    name = "regeneration"

    def __init__(
        self,
        store: FrameStore,
        bus: EventBus,
        renderer: ScreenRenderer,
        checkpoints: CheckpointStore,
        policy: RetryPolicy | None = None,
    ) -> None:
        super().__init__(store, bus, checkpoints, policy)
        self.renderer = renderer

    async def run(self, job: RegenerationJob, run_id: str | None = None) -> Frame:
        """
        Regenerate ``job.frame_id``.

        Raises:
            FrameNotFoundError: Target frame missing or not in the project
            StepFailedError: Rendering or persisting exhausted its retries
        """
        run_id = run_id or new_run_id(Prefix.REGENERATION)
        channel = channel_for_user(job.user_id)
        runner = self.runner(run_id)
        start = time.perf_counter()

        with LogContext(run_id=run_id, project_id=job.project_id, workflow=self.name):
            logger.info("regeneration_started", frame_id=job.frame_id)
            await self.publish(
                channel,
                Topic.REGENERATION_START,
                EventPayload(
                    project_id=job.project_id, run_id=run_id, status="regenerating", frame_id=job.frame_id
                ),
            )

            try:
                target = await runner.run(LOAD_STEP, partial(self._load_target, job), Frame)
                updated = await runner.run(
                    REGENERATE_STEP, partial(self._regenerate, job, target, channel, run_id), Frame
                )
            except StepFailedError as e:
                metrics_collector.record_workflow_run(self.name, "failed", time.perf_counter() - start)
                not_found = isinstance(e.cause, FrameNotFoundError)
                logger.error("regeneration_failed", step=e.step, attempts=e.attempts, error=str(e.cause))
                await self.publish(
                    channel,
                    Topic.REGENERATION_ERROR,
                    EventPayload(
                        project_id=job.project_id,
                        run_id=run_id,
                        status="error",
                        frame_id=job.frame_id,
                        error="Frame not found" if not_found else str(e.cause),
                    ),
                )
                if not_found:
                    raise e.cause from e
                raise

            await self.publish(
                channel,
                Topic.REGENERATION_COMPLETE,
                EventPayload(
                    project_id=job.project_id,
                    run_id=run_id,
                    status=JobStatus.COMPLETED.value,
                    frame_id=job.frame_id,
                ),
            )
            await self.checkpoints.clear(run_id)
            metrics_collector.record_workflow_run(self.name, "completed", time.perf_counter() - start)
            logger.info("regeneration_completed", frame_id=updated.id)
            return updated

    async def _load_target(self, job: RegenerationJob) -> Frame:
        frame = await self.store.get_frame(job.frame_id)
        if frame is None or (frame.project_id and frame.project_id != job.project_id):
            raise FrameNotFoundError(job.frame_id)
        return frame

    async def _regenerate(self, job: RegenerationJob, target: Frame, channel: str, run_id: str) -> Frame:
        theme = job.theme or await self.store.get_project_theme(job.project_id)
        # the target's own markup goes in as "original", not as sibling context
        siblings = [f for f in job.existing_frames if f.id != target.id]
        context = format_frames_context(siblings)

        markup = await self.renderer.regenerate(target, job.prompt, context, theme_css(theme))
        updated = await self.store.update_frame(target.id, markup)
        metrics_collector.record_frame_persisted("regenerated")
        logger.info("frame_updated", frame_id=updated.id, siblings=len(siblings))

        await self.publish(
            channel,
            Topic.FRAME_REGENERATED,
            EventPayload(project_id=job.project_id, run_id=run_id, frame=updated, frame_id=updated.id),
        )
        return updated
