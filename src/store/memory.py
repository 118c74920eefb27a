"""In-process Frame Store for local runs and tests."""

import asyncio
from datetime import datetime, timezone

from core import FrameNotFoundError, ProjectNotFoundError, get_logger
from core.id import new_frame_id, new_project_id
from models.domain import Frame, Project

from .base import FrameStore

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryFrameStore(FrameStore):
    """
    Dict-backed store guarded by a single asyncio lock.

    Frames are kept per project in insertion order. Returned models are
    copies, so callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._projects: dict[str, Project] = {}
        self._frames: dict[str, Frame] = {}
        self._project_frames: dict[str, list[str]] = {}
        self._idempotency: dict[str, str] = {}

    async def create_project(
        self, user_id: str, name: str = "Untitled Project", project_id: str | None = None
    ) -> Project:
        async with self._lock:
            project = Project(
                id=project_id or new_project_id(),
                user_id=user_id,
                name=name,
                created_at=_now(),
            )
            self._projects[project.id] = project
            self._project_frames.setdefault(project.id, [])
            logger.info("project_created", project_id=project.id, user_id=user_id)
            return project.model_copy()

    async def get_project(self, project_id: str) -> Project | None:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            return project.model_copy(update={"frames": self._frames_of(project_id)})

    async def find_frames_by_project(self, project_id: str) -> list[Frame]:
        async with self._lock:
            return self._frames_of(project_id)

    async def get_frame(self, frame_id: str) -> Frame | None:
        async with self._lock:
            frame = self._frames.get(frame_id)
            return frame.model_copy() if frame else None

    async def create_frame(
        self,
        project_id: str,
        title: str,
        html_content: str,
        *,
        idempotency_key: str | None = None,
    ) -> Frame:
        async with self._lock:
            if project_id not in self._projects:
                raise ProjectNotFoundError(project_id)

            if idempotency_key and idempotency_key in self._idempotency:
                existing = self._frames[self._idempotency[idempotency_key]]
                logger.info("frame_create_replayed", frame_id=existing.id, key=idempotency_key)
                return existing.model_copy()

            now = _now()
            frame = Frame(
                id=new_frame_id(),
                project_id=project_id,
                title=title,
                html_content=html_content,
                created_at=now,
                updated_at=now,
            )
            self._frames[frame.id] = frame
            self._project_frames[project_id].append(frame.id)
            if idempotency_key:
                self._idempotency[idempotency_key] = frame.id
            self._touch(project_id, now)
            return frame.model_copy()

    async def release_idempotency_keys(self, run_id: str) -> None:
        prefix = f"{run_id}:"
        async with self._lock:
            for key in [k for k in self._idempotency if k.startswith(prefix)]:
                del self._idempotency[key]

    async def update_frame(self, frame_id: str, html_content: str) -> Frame:
        async with self._lock:
            frame = self._frames.get(frame_id)
            if frame is None:
                raise FrameNotFoundError(frame_id)
            now = _now()
            updated = frame.model_copy(update={"html_content": html_content, "updated_at": now})
            self._frames[frame_id] = updated
            if updated.project_id:
                self._touch(updated.project_id, now)
            return updated.model_copy()

    async def get_project_theme(self, project_id: str) -> str | None:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            return project.theme

    async def set_project_theme(self, project_id: str, theme_id: str) -> None:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            self._projects[project_id] = project.model_copy(update={"theme": theme_id, "updated_at": _now()})

    def _frames_of(self, project_id: str) -> list[Frame]:
        return [self._frames[fid].model_copy() for fid in self._project_frames.get(project_id, [])]

    def _touch(self, project_id: str, when: datetime) -> None:
        project = self._projects.get(project_id)
        if project is not None:
            self._projects[project_id] = project.model_copy(update={"updated_at": when})
