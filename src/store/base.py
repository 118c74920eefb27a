"""Frame Store contract consumed by the workflows and consumer."""

from abc import ABC, abstractmethod

from models.domain import Frame, Project


class FrameStore(ABC):
    """
    Durable store of projects and their frames.

    Implementations must return frames of a project in creation order and
    must let errors (connection loss, constraint violations) propagate; the
    workflow step runner decides whether to retry.
    """

    @abstractmethod
    async def find_frames_by_project(self, project_id: str) -> list[Frame]:
        """All frames of a project, oldest first."""

    @abstractmethod
    async def get_frame(self, frame_id: str) -> Frame | None:
        """A frame by id, or None."""

    @abstractmethod
    async def create_frame(
        self,
        project_id: str,
        title: str,
        html_content: str,
        *,
        idempotency_key: str | None = None,
    ) -> Frame:
        """
        Append a new frame to a project.

        A repeated call with the same ``idempotency_key`` returns the frame
        created by the first call instead of creating another one.
        """

    @abstractmethod
    async def release_idempotency_keys(self, run_id: str) -> None:
        """Forget the idempotency keys of a finished run."""

    @abstractmethod
    async def update_frame(self, frame_id: str, html_content: str) -> Frame:
        """Replace a frame's markup in place. Raises FrameNotFoundError."""

    @abstractmethod
    async def get_project_theme(self, project_id: str) -> str | None:
        """Stored theme id, or None if not chosen yet."""

    @abstractmethod
    async def set_project_theme(self, project_id: str, theme_id: str) -> None:
        """Persist the project's theme id."""

    @abstractmethod
    async def get_project(self, project_id: str) -> Project | None:
        """Project with its frames, or None."""
