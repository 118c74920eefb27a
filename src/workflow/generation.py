"""
Generation Orchestrator

Plans screens once, then renders, persists and publishes them one at a time.
Each screen sees every frame produced before it (pre-existing frames plus the
ones generated earlier in the same run) as context.
"""

import time
from functools import partial

from agents import ScreenPlanner, ScreenRenderer, theme_css
from agents.prompts import format_frames_context
from core import LogContext, StepFailedError, get_logger
from core.id import Prefix, new_run_id
from core.validate import GenerationJob
from models.domain import Frame, JobStatus, ProjectSnapshot, ResolvedPlan, ScreenSpec
from models.events import EventPayload, Topic
from monitoring import metrics_collector
from store import FrameStore
from streaming import EventBus, channel_for_user

from .base import Workflow
from .checkpoint import CheckpointStore
from .steps import RetryPolicy, StepRunner

logger = get_logger(__name__)

LOAD_STEP = "load-project-state"
PLAN_STEP = "analyze-and-plan-screens"


def screen_step(index: int) -> str:
    return f"generate-screen-{index}"


class GenerationWorkflow(Workflow):
    """Main generation pipeline for one project."""

    name = "generation"

    def __init__(
        self,
        store: FrameStore,
        bus: EventBus,
        planner: ScreenPlanner,
        renderer: ScreenRenderer,
        checkpoints: CheckpointStore,
        policy: RetryPolicy | None = None,
    ) -> None:
        super().__init__(store, bus, checkpoints, policy)
        self.planner = planner
        self.renderer = renderer

    async def run(self, job: GenerationJob, run_id: str | None = None) -> list[Frame]:
        """
        Run (or resume) a generation job.

        Passing the run id of an interrupted run resumes it: completed steps
        are replayed from checkpoints instead of being executed again.

        Returns:
            Frames created by this run, in plan order

        Raises:
            StepFailedError: A step exhausted its retries; frames persisted by
                earlier steps are kept and ``generation.error`` is published
        """
        run_id = run_id or new_run_id(Prefix.GENERATION)
        channel = channel_for_user(job.user_id)
        runner = self.runner(run_id)
        start = time.perf_counter()

        with LogContext(run_id=run_id, project_id=job.project_id, workflow=self.name):
            logger.info("generation_started", prompt_length=len(job.prompt))
            await self.publish(
                channel,
                Topic.GENERATION_START,
                EventPayload(project_id=job.project_id, run_id=run_id, status=JobStatus.RUNNING.value),
            )

            try:
                created = await self._execute(job, runner, channel)
            except StepFailedError as e:
                metrics_collector.record_workflow_run(self.name, "failed", time.perf_counter() - start)
                logger.error("generation_failed", step=e.step, attempts=e.attempts, error=str(e.cause))
                await self.publish(
                    channel,
                    Topic.GENERATION_ERROR,
                    EventPayload(
                        project_id=job.project_id,
                        run_id=run_id,
                        status=JobStatus.FAILED.value,
                        error=f"{e.step}: {e.cause}",
                    ),
                )
                raise

            await self.publish(
                channel,
                Topic.GENERATION_COMPLETE,
                EventPayload(project_id=job.project_id, run_id=run_id, status=JobStatus.COMPLETED.value),
            )
            await self.checkpoints.clear(run_id)
            await self.store.release_idempotency_keys(run_id)
            metrics_collector.record_workflow_run(self.name, "completed", time.perf_counter() - start)
            logger.info("generation_completed", frames=len(created))
            return created

    async def _execute(self, job: GenerationJob, runner: StepRunner, channel: str) -> list[Frame]:
        snapshot = await runner.run(LOAD_STEP, partial(self._load_snapshot, job), ProjectSnapshot)
        plan = await runner.run(
            PLAN_STEP, partial(self._analyze, job, snapshot, channel, runner.run_id), ResolvedPlan
        )

        style = theme_css(plan.theme)
        accumulated = list(snapshot.frames)
        created: list[Frame] = []
        total = len(plan.screens)

        for index, screen in enumerate(plan.screens):
            step = screen_step(index)
            context = format_frames_context(accumulated)
            frame = await runner.run(
                step,
                partial(
                    self._generate_screen,
                    job,
                    screen,
                    index,
                    total,
                    context,
                    style,
                    channel,
                    runner.run_id,
                    runner.idempotency_key(step),
                ),
                Frame,
            )
            accumulated.append(frame)
            created.append(frame)

        return created

    async def _load_snapshot(self, job: GenerationJob) -> ProjectSnapshot:
        # the enqueued frame list may be stale; the store is authoritative
        frames = await self.store.find_frames_by_project(job.project_id)
        theme = await self.store.get_project_theme(job.project_id)
        if len(frames) != len(job.frames):
            logger.info("stale_job_frames", enqueued=len(job.frames), stored=len(frames))
        return ProjectSnapshot(frames=frames, theme=theme)

    async def _analyze(
        self, job: GenerationJob, snapshot: ProjectSnapshot, channel: str, run_id: str
    ) -> ResolvedPlan:
        await self.publish(
            channel,
            Topic.ANALYSIS_START,
            EventPayload(project_id=job.project_id, run_id=run_id, status=JobStatus.ANALYZING.value),
        )

        context = format_frames_context(snapshot.frames) if snapshot.is_continuation else ""
        plan = await self.planner.plan(job.prompt, context, snapshot.theme)

        if snapshot.is_continuation and snapshot.theme:
            theme = snapshot.theme
            if plan.theme != theme:
                logger.info("planner_theme_overridden", planner_theme=plan.theme, theme=theme)
        else:
            theme = plan.theme
            await self.store.set_project_theme(job.project_id, theme)

        await self.publish(
            channel,
            Topic.ANALYSIS_COMPLETE,
            EventPayload(
                project_id=job.project_id,
                run_id=run_id,
                status=JobStatus.GENERATING.value,
                theme=theme,
                total_screens=len(plan.screens),
                screens=plan.screens,
            ),
        )
        return ResolvedPlan(theme=theme, screens=plan.screens, planner_theme=plan.theme)

    async def _generate_screen(
        self,
        job: GenerationJob,
        screen: ScreenSpec,
        index: int,
        total: int,
        context: str,
        style: str,
        channel: str,
        run_id: str,
        idempotency_key: str,
    ) -> Frame:
        markup = await self.renderer.render(screen, context, style, index=index, total=total)
        frame = await self.store.create_frame(
            job.project_id, screen.name, markup, idempotency_key=idempotency_key
        )
        metrics_collector.record_frame_persisted("created")
        logger.info("frame_persisted", frame_id=frame.id, screen_id=screen.id, index=index)

        await self.publish(
            channel,
            Topic.FRAME_CREATED,
            EventPayload(project_id=job.project_id, run_id=run_id, frame=frame, screen_id=screen.id),
        )
        return frame
