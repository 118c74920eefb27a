"""
Step checkpoints.

Completed step results per workflow run, so a resumed run skips steps that
already finished. Values are JSON-compatible (already encoded by the runner).
"""

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from core import get_logger
from core.json import dumps, loads

logger = get_logger(__name__)


class CheckpointStore(ABC):
    """Per-run map of step name -> encoded result."""

    @abstractmethod
    async def load(self, run_id: str) -> dict[str, Any]:
        """All completed steps of a run (empty for a fresh run)."""

    @abstractmethod
    async def save(self, run_id: str, step: str, value: Any) -> None:
        """Record a completed step."""

    @abstractmethod
    async def clear(self, run_id: str) -> None:
        """Forget a run (after it finished)."""

    async def completed_steps(self, run_id: str) -> list[str]:
        return list(await self.load(run_id))


class InMemoryCheckpointStore(CheckpointStore):
    """Process-local checkpoints; lost on restart."""

    def __init__(self) -> None:
        self._runs: dict[str, dict[str, Any]] = {}

    async def load(self, run_id: str) -> dict[str, Any]:
        return dict(self._runs.get(run_id, {}))

    async def save(self, run_id: str, step: str, value: Any) -> None:
        self._runs.setdefault(run_id, {})[step] = value

    async def clear(self, run_id: str) -> None:
        self._runs.pop(run_id, None)


class FileCheckpointStore(CheckpointStore):
    """
    One JSON document per run under ``base_dir``.

    Writes go to a temp file then ``os.replace`` so a crash never leaves a
    half-written checkpoint. Blocking IO runs in a worker thread.
    """

    def __init__(self, base_dir: str | os.PathLike[str] = ".checkpoints") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    def _path(self, run_id: str) -> Path:
        return self.base_dir / f"{run_id}.json"

    def _read(self, run_id: str) -> dict[str, Any]:
        path = self._path(run_id)
        if not path.exists():
            return {}
        return loads(path.read_bytes())

    def _write(self, run_id: str, steps: dict[str, Any]) -> None:
        path = self._path(run_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_bytes(dumps(steps))
        os.replace(tmp, path)

    async def load(self, run_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(self._read, run_id)

    async def save(self, run_id: str, step: str, value: Any) -> None:
        async with self._lock:
            steps = await asyncio.to_thread(self._read, run_id)
            steps[step] = value
            await asyncio.to_thread(self._write, run_id, steps)
        logger.debug("checkpoint_saved", run_id=run_id, step=step)

    async def clear(self, run_id: str) -> None:
        path = self._path(run_id)
        await asyncio.to_thread(path.unlink, True)
