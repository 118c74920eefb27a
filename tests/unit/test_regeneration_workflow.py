"""Regeneration orchestrator tests."""

import pytest

from agents import theme_css
from core import FrameNotFoundError, StepFailedError
from core.validate import RegenerationJob
from models import Topic
from streaming import channel_for_user
from workflow import RegenerationWorkflow


async def _collect(subscription):
    subscription.close()
    return [event async for event in subscription]


@pytest.fixture
def workflow(store, bus, mock_renderer, checkpoints, fast_policy):
    return RegenerationWorkflow(store, bus, mock_renderer, checkpoints, fast_policy)


@pytest.fixture
def frames(store, project):
    async def _create():
        return [
            await store.create_frame(project.id, "Welcome", "<div>welcome</div>"),
            await store.create_frame(project.id, "Dashboard", "<div>dashboard</div>"),
            await store.create_frame(project.id, "Profile", "<div>profile</div>"),
        ]

    return _create


def _job(frame_id, existing=(), **kwargs):
    data = {
        "user_id": "user-1",
        "project_id": "proj-1",
        "frame_id": frame_id,
        "prompt": "Make it darker",
        "existing_frames": list(existing),
    }
    data.update(kwargs)
    return RegenerationJob(**data)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_updates_frame_in_place(workflow, store, bus, frames, project):
    existing = await frames()
    target = existing[1]
    subscription = bus.subscribe(channel_for_user("user-1"))

    updated = await workflow.run(_job(target.id, existing))

    assert updated.id == target.id
    assert updated.html_content == "<div>Dashboard v2</div>"
    assert updated.created_at == target.created_at
    assert updated.updated_at >= target.updated_at

    stored = await store.find_frames_by_project(project.id)
    assert [f.id for f in stored] == [f.id for f in existing]
    assert stored[0].html_content == "<div>welcome</div>"
    assert stored[2].html_content == "<div>profile</div>"

    events = await _collect(subscription)
    assert [e.topic for e in events] == [
        Topic.REGENERATION_START,
        Topic.FRAME_REGENERATED,
        Topic.REGENERATION_COMPLETE,
    ]
    assert events[0].payload.status == "regenerating"
    assert events[0].payload.frame_id == target.id
    assert events[1].payload.frame.html_content == "<div>Dashboard v2</div>"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_siblings_exclude_target(workflow, mock_renderer, frames):
    existing = await frames()
    target = existing[0]

    await workflow.run(_job(target.id, existing))

    frame, prompt, context, style = mock_renderer.regenerate.await_args.args
    assert frame.id == target.id
    assert prompt == "Make it darker"
    assert "<!-- Welcome -->" not in context
    assert "<!-- Dashboard -->\n<div>dashboard</div>" in context
    assert "<!-- Profile -->\n<div>profile</div>" in context


@pytest.mark.unit
@pytest.mark.asyncio
async def test_theme_falls_back_to_stored(workflow, mock_renderer, store, frames, project):
    existing = await frames()
    await store.set_project_theme(project.id, "forest")

    await workflow.run(_job(existing[0].id))
    assert mock_renderer.regenerate.await_args.args[3] == theme_css("forest")

    await workflow.run(_job(existing[0].id, theme="sunset"))
    assert mock_renderer.regenerate.await_args.args[3] == theme_css("sunset")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_frame_reports_not_found(workflow, mock_renderer, bus, store, project):
    subscription = bus.subscribe(channel_for_user("user-1"))

    with pytest.raises(FrameNotFoundError):
        await workflow.run(_job("frame_missing"))

    events = await _collect(subscription)
    assert [e.topic for e in events] == [Topic.REGENERATION_START, Topic.REGENERATION_ERROR]
    assert events[-1].payload.status == "error"
    assert events[-1].payload.error == "Frame not found"
    mock_renderer.regenerate.assert_not_awaited()
    assert await store.find_frames_by_project(project.id) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_frame_of_other_project_is_not_found(workflow, store, frames):
    existing = await frames()
    await store.create_project("user-1", "Other", project_id="proj-2")

    with pytest.raises(FrameNotFoundError):
        await workflow.run(_job(existing[0].id, project_id="proj-2"))

    assert (await store.get_frame(existing[0].id)).html_content == "<div>welcome</div>"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_render_failure_keeps_original(workflow, mock_renderer, bus, store, frames):
    existing = await frames()
    mock_renderer.regenerate.side_effect = RuntimeError("quota exceeded")
    subscription = bus.subscribe(channel_for_user("user-1"), topics=[Topic.REGENERATION_ERROR])

    with pytest.raises(StepFailedError) as exc_info:
        await workflow.run(_job(existing[1].id))

    assert exc_info.value.step == "regenerate-frame"
    assert mock_renderer.regenerate.await_count == 3
    (error,) = await _collect(subscription)
    assert error.payload.error == "quota exceeded"
    assert (await store.get_frame(existing[1].id)).html_content == "<div>dashboard</div>"
