"""Job Dispatcher - validates enqueue messages and runs workflows as tasks."""

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable
from typing import Any

from returns.result import Failure

from core import JobInProgressError, ValidationError, get_logger
from core.id import Prefix, new_run_id
from core.validate import GenerationJob, RegenerationJob, parse_generation_job, parse_regeneration_job
from workflow import GenerationWorkflow, RegenerationWorkflow

logger = get_logger(__name__)

# Finished runs kept for wait()
RECENT_RUNS = 32


def _unwrap(result) -> Any:
    if isinstance(result, Failure):
        failure = result.failure()
        raise ValidationError(failure.message, list(failure.details))
    return result.unwrap()


class JobDispatcher:
    """
    Entry point for enqueued jobs.

    Only one main generation may run per project at a time within a
    dispatcher; regenerations are not limited.
    """

    def __init__(self, generation: GenerationWorkflow, regeneration: RegenerationWorkflow) -> None:
        self.generation = generation
        self.regeneration = regeneration
        self._tasks: dict[str, asyncio.Task] = {}
        self._recent: OrderedDict[str, asyncio.Task] = OrderedDict()
        self._generating: dict[str, str] = {}

    def is_generating(self, project_id: str) -> bool:
        return project_id in self._generating

    async def submit_generation(self, message: dict | GenerationJob) -> str:
        """
        Validate and start a main generation.

        Returns:
            Run id of the started workflow

        Raises:
            ValidationError: Message failed validation
            JobInProgressError: A generation is already running for the project
        """
        job: GenerationJob = _unwrap(parse_generation_job(message))
        if self.is_generating(job.project_id):
            logger.warning("generation_rejected", project_id=job.project_id, run_id=self._generating[job.project_id])
            raise JobInProgressError(job.project_id)

        run_id = new_run_id(Prefix.GENERATION)
        self._generating[job.project_id] = run_id
        self._start(run_id, self.generation.run(job, run_id), project_id=job.project_id)
        logger.info("generation_enqueued", run_id=run_id, project_id=job.project_id)
        return run_id

    async def submit_regeneration(self, message: dict | RegenerationJob) -> str:
        """Validate and start a single-frame regeneration. Returns the run id."""
        job: RegenerationJob = _unwrap(parse_regeneration_job(message))
        run_id = new_run_id(Prefix.REGENERATION)
        self._start(run_id, self.regeneration.run(job, run_id))
        logger.info("regeneration_enqueued", run_id=run_id, project_id=job.project_id, frame_id=job.frame_id)
        return run_id

    async def wait(self, run_id: str) -> Any:
        """Wait for a run and return its result (or raise its error)."""
        task = self._tasks.get(run_id) or self._recent.get(run_id)
        if task is None:
            raise KeyError(run_id)
        return await task

    def active_runs(self) -> list[str]:
        return [run_id for run_id, task in self._tasks.items() if not task.done()]

    async def shutdown(self) -> None:
        """Cancel unfinished runs and wait for them to stop."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("dispatcher_shutdown", cancelled=len(pending))

    def _start(self, run_id: str, coro: Awaitable[Any], project_id: str | None = None) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks[run_id] = task

        def _done(t: asyncio.Task) -> None:
            self._tasks.pop(run_id, None)
            self._recent[run_id] = t
            while len(self._recent) > RECENT_RUNS:
                self._recent.popitem(last=False)
            if project_id is not None and self._generating.get(project_id) == run_id:
                del self._generating[project_id]
            if t.cancelled():
                logger.warning("run_cancelled", run_id=run_id)
            elif t.exception() is not None:
                logger.error("run_failed", run_id=run_id, error=str(t.exception()))

        task.add_done_callback(_done)
