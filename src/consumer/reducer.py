"""
Canvas reducer.

Pure state transitions from lifecycle events to the client's view of one
project: its frames, its theme and the job status. Events may arrive
duplicated, late or out of order; every rule below is safe to re-apply.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from models.domain import Frame, JobStatus, ScreenSpec
from models.events import LifecycleEvent, Topic

# Order of progress within one run. Terminal states rank highest.
STATUS_RANK = {
    JobStatus.IDLE: 0,
    JobStatus.RUNNING: 1,
    JobStatus.ANALYZING: 2,
    JobStatus.GENERATING: 3,
    JobStatus.COMPLETED: 4,
    JobStatus.FAILED: 5,
}

ACTIVE_STATUSES = frozenset({JobStatus.RUNNING, JobStatus.ANALYZING, JobStatus.GENERATING})
TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class CanvasState(BaseModel):
    """Client-side view of a project."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    frames: tuple[Frame, ...] = ()
    theme_id: str | None = None
    status: JobStatus = JobStatus.IDLE
    run_id: str | None = None
    finished_runs: frozenset[str] = Field(default_factory=frozenset)
    error: str | None = None

    # Placeholder frame ids (= screen ids) still waiting for real content
    skeleton_ids: frozenset[str] = Field(default_factory=frozenset)
    # screen id -> frame id, for screens of the current run that have arrived
    resolved_screens: dict[str, str] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def frame_ids(self) -> list[str]:
        return [f.id for f in self.frames]


def initial_state(project_id: str, frames: Iterable[Frame] = (), theme_id: str | None = None) -> CanvasState:
    """
    Seed state from an authoritative load.

    A project that already has frames starts ``idle``; an empty one is
    expected to be generating and starts ``running``.
    """
    frames = tuple(frames)
    return CanvasState(
        project_id=project_id,
        frames=frames,
        theme_id=theme_id,
        status=JobStatus.IDLE if frames else JobStatus.RUNNING,
    )


def reduce(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    """Apply one event. Events for other projects leave the state unchanged."""
    payload = event.payload
    if payload.project_id != state.project_id:
        return state

    handler = _HANDLERS.get(event.topic)
    if handler is None:
        return state
    return handler(state, event)


def settle(state: CanvasState) -> CanvasState:
    """``completed`` -> ``idle``, applied a short while after completion."""
    if state.status != JobStatus.COMPLETED:
        return state
    return state.model_copy(update={"status": JobStatus.IDLE})


def expire(state: CanvasState, reason: str) -> CanvasState:
    """Give up on an active run that stopped producing events."""
    if not state.is_active:
        return state
    finished = state.finished_runs | {state.run_id} if state.run_id else state.finished_runs
    return _drop_skeletons(state).model_copy(
        update={"status": JobStatus.FAILED, "error": reason, "finished_runs": finished}
    )


# ============================================================================
# Run tracking
# ============================================================================


def _finished(state: CanvasState, run_id: str | None) -> bool:
    return run_id is not None and run_id in state.finished_runs


def _enter_run(state: CanvasState, run_id: str | None, restart: bool = True) -> CanvasState:
    """
    Switch to ``run_id`` if it is a run we have not seen yet.

    Status topics restart the status ladder. Other topics keep the current
    status unless it belongs to a finished run.
    """
    if run_id is None or run_id == state.run_id:
        return state
    status = state.status
    if restart or status in TERMINAL_STATUSES:
        status = JobStatus.IDLE
    return state.model_copy(
        update={"run_id": run_id, "status": status, "error": None, "resolved_screens": {}}
    )


def _advance(state: CanvasState, status: JobStatus) -> CanvasState:
    # never move backwards within a run
    if STATUS_RANK[status] < STATUS_RANK[state.status]:
        return state
    return state.model_copy(update={"status": status})


def _drop_skeletons(state: CanvasState) -> CanvasState:
    if not state.skeleton_ids:
        return state
    frames = tuple(f for f in state.frames if f.id not in state.skeleton_ids)
    return state.model_copy(update={"frames": frames, "skeleton_ids": frozenset()})


# ============================================================================
# Generation topics
# ============================================================================


def _on_generation_start(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    run_id = event.payload.run_id
    if _finished(state, run_id):
        return state
    if run_id is None:
        # untagged start always begins a new run
        return state.model_copy(update={"status": JobStatus.RUNNING, "error": None, "resolved_screens": {}})
    return _advance(_enter_run(state, run_id), JobStatus.RUNNING)


def _on_analysis_start(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    run_id = event.payload.run_id
    if _finished(state, run_id):
        return state
    return _advance(_enter_run(state, run_id), JobStatus.ANALYZING)


def _on_analysis_complete(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    payload = event.payload
    if _finished(state, payload.run_id):
        return state

    state = _advance(_enter_run(state, payload.run_id), JobStatus.GENERATING)

    known = set(state.frame_ids()) | set(state.resolved_screens)
    skeletons = []
    for screen in payload.screens or []:
        if screen.id in known:
            continue
        known.add(screen.id)
        skeletons.append(_skeleton(screen, state.project_id))

    update: dict = {}
    if payload.theme:
        update["theme_id"] = payload.theme
    if skeletons:
        update["frames"] = state.frames + tuple(skeletons)
        update["skeleton_ids"] = state.skeleton_ids | {f.id for f in skeletons}
    return state.model_copy(update=update) if update else state


def _skeleton(screen: ScreenSpec, project_id: str) -> Frame:
    return Frame(id=screen.id, project_id=project_id, title=screen.name, html_content="", is_loading=True)


def _on_frame_created(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    payload = event.payload
    frame = payload.frame
    if frame is None:
        return state

    if not _finished(state, payload.run_id):
        state = _enter_run(state, payload.run_id, restart=False)

    real = frame.model_copy(update={"is_loading": False})
    screen_id = payload.screen_id
    frames = list(state.frames)

    # the real frame id wins over the placeholder so a duplicate replaces itself
    index = next((i for i, f in enumerate(frames) if f.id == real.id), None)
    if index is None and screen_id:
        index = next((i for i, f in enumerate(frames) if f.id == screen_id), None)

    if index is None:
        frames.append(real)
    else:
        frames[index] = real

    skeleton_ids = state.skeleton_ids
    if screen_id and screen_id in skeleton_ids:
        # placeholder left behind when the real frame was already present
        frames = [f for f in frames if f.id != screen_id or f is real]
        skeleton_ids = skeleton_ids - {screen_id}

    update: dict = {"frames": tuple(frames), "skeleton_ids": skeleton_ids}
    if screen_id and (payload.run_id is None or payload.run_id == state.run_id):
        update["resolved_screens"] = {**state.resolved_screens, screen_id: real.id}
    return state.model_copy(update=update)


def _on_generation_complete(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    run_id = event.payload.run_id
    if _finished(state, run_id):
        return state
    state = _advance(_enter_run(state, run_id), JobStatus.COMPLETED)
    if run_id:
        state = state.model_copy(update={"finished_runs": state.finished_runs | {run_id}})
    return state


def _on_generation_error(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    payload = event.payload
    if _finished(state, payload.run_id):
        return state
    state = _drop_skeletons(_enter_run(state, payload.run_id))
    update: dict = {"status": JobStatus.FAILED, "error": payload.error or "Generation failed"}
    if payload.run_id:
        update["finished_runs"] = state.finished_runs | {payload.run_id}
    return state.model_copy(update=update)


# ============================================================================
# Regeneration topics (frame-level only, job status untouched)
# ============================================================================


def _set_loading(state: CanvasState, frame_id: str | None, loading: bool) -> CanvasState:
    if not frame_id:
        return state
    frames = tuple(f.model_copy(update={"is_loading": loading}) if f.id == frame_id else f for f in state.frames)
    return state.model_copy(update={"frames": frames})


def _on_regeneration_start(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    return _set_loading(state, event.payload.frame_id, True)


def _on_frame_regenerated(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    frame = event.payload.frame
    if frame is None:
        return state
    real = frame.model_copy(update={"is_loading": False})
    frames = list(state.frames)
    index = next((i for i, f in enumerate(frames) if f.id == real.id), None)
    if index is None:
        frames.append(real)
    else:
        frames[index] = real
    return state.model_copy(update={"frames": tuple(frames)})


def _on_regeneration_finished(state: CanvasState, event: LifecycleEvent) -> CanvasState:
    return _set_loading(state, event.payload.frame_id, False)


_HANDLERS = {
    Topic.GENERATION_START: _on_generation_start,
    Topic.ANALYSIS_START: _on_analysis_start,
    Topic.ANALYSIS_COMPLETE: _on_analysis_complete,
    Topic.FRAME_CREATED: _on_frame_created,
    Topic.GENERATION_COMPLETE: _on_generation_complete,
    Topic.GENERATION_ERROR: _on_generation_error,
    Topic.REGENERATION_START: _on_regeneration_start,
    Topic.FRAME_REGENERATED: _on_frame_regenerated,
    Topic.REGENERATION_COMPLETE: _on_regeneration_finished,
    Topic.REGENERATION_ERROR: _on_regeneration_finished,
}
