"""
Durable step runner.

A workflow is a sequence of named steps. Each step result is checkpointed
under the run id, so re-running a workflow with the same run id replays
finished steps from the checkpoint instead of calling them again.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import TypeAdapter

from core import NonRetryableError, StepFailedError, get_logger
from monitoring import metrics_collector

from .checkpoint import CheckpointStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff policy for one step."""

    max_attempts: int = 4
    base_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)


class StepRunner:
    """Runs the steps of one workflow run with retry and memoization."""

    def __init__(
        self,
        run_id: str,
        checkpoints: CheckpointStore,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.run_id = run_id
        self.checkpoints = checkpoints
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._adapters: dict[Any, TypeAdapter] = {}

    def _adapter(self, result_type: Any) -> TypeAdapter:
        key = repr(result_type)
        if key not in self._adapters:
            self._adapters[key] = TypeAdapter(result_type)
        return self._adapters[key]

    def idempotency_key(self, name: str) -> str:
        """Key that identifies side effects of a step across retries."""
        return f"{self.run_id}:{name}"

    async def run(self, name: str, fn: Callable[[], Awaitable[T]], result_type: Any) -> T:
        """
        Run ``fn`` as step ``name`` and return its result.

        If the step already completed for this run, the checkpointed value is
        decoded with ``result_type`` and returned without calling ``fn``.

        Raises:
            StepFailedError: retries exhausted or a NonRetryableError was raised
        """
        adapter = self._adapter(result_type)

        done = await self.checkpoints.load(self.run_id)
        if name in done:
            logger.info("step_replayed", run_id=self.run_id, step=name)
            metrics_collector.record_step_attempt(name, "replayed")
            return adapter.validate_python(done[name])

        attempt = 0
        while True:
            attempt += 1
            start = time.perf_counter()
            try:
                result = await fn()
            except NonRetryableError as e:
                metrics_collector.record_step_attempt(name, "aborted")
                logger.error("step_aborted", run_id=self.run_id, step=name, attempt=attempt, error=str(e))
                raise StepFailedError(name, attempt, e) from e
            except asyncio.CancelledError:
                raise
            except Exception as e:
                metrics_collector.record_step_attempt(name, "error")
                if attempt >= self.policy.max_attempts:
                    logger.error(
                        "step_exhausted",
                        run_id=self.run_id,
                        step=name,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise StepFailedError(name, attempt, e) from e

                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "step_retry",
                    run_id=self.run_id,
                    step=name,
                    attempt=attempt,
                    delay=delay,
                    error=str(e),
                )
                await self._sleep(delay)
                continue

            metrics_collector.record_step_attempt(name, "success")
            await self.checkpoints.save(self.run_id, name, adapter.dump_python(result, mode="json"))
            logger.info(
                "step_completed",
                run_id=self.run_id,
                step=name,
                attempt=attempt,
                duration_ms=round((time.perf_counter() - start) * 1000, 1),
            )
            return result
