"""Generation orchestrator tests."""

import pytest

from agents import theme_css
from core import ProjectNotFoundError, StepFailedError
from core.validate import GenerationJob
from models import Topic
from streaming import channel_for_user
from workflow import GenerationWorkflow


PROMPT = "Fitness app with steps and heart rate"


def _job(**kwargs):
    data = {"user_id": "user-1", "project_id": "proj-1", "prompt": PROMPT}
    data.update(kwargs)
    return GenerationJob(**data)


async def _collect(subscription):
    subscription.close()
    return [event async for event in subscription]


@pytest.fixture
def workflow(store, bus, mock_planner, mock_renderer, checkpoints, fast_policy):
    return GenerationWorkflow(store, bus, mock_planner, mock_renderer, checkpoints, fast_policy)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_project_event_sequence(workflow, bus, store, project):
    subscription = bus.subscribe(channel_for_user("user-1"))

    created = await workflow.run(_job())

    events = await _collect(subscription)
    assert [e.topic for e in events] == [
        Topic.GENERATION_START,
        Topic.ANALYSIS_START,
        Topic.ANALYSIS_COMPLETE,
        Topic.FRAME_CREATED,
        Topic.FRAME_CREATED,
        Topic.GENERATION_COMPLETE,
    ]
    assert [e.payload.status for e in events if e.payload.status] == [
        "running",
        "analyzing",
        "generating",
        "completed",
    ]

    analysis = events[2].payload
    assert analysis.theme == "midnight"
    assert analysis.total_screens == 2
    assert [s.id for s in analysis.screens] == ["welcome", "home-dashboard"]

    frame_events = [e.payload for e in events if e.topic == Topic.FRAME_CREATED]
    assert [p.screen_id for p in frame_events] == ["welcome", "home-dashboard"]
    assert [p.frame.id for p in frame_events] == [f.id for f in created]

    stored = await store.find_frames_by_project(project.id)
    assert len(stored) == 2
    assert [f.title for f in stored] == ["Welcome", "Home Dashboard"]
    assert stored[0].html_content == "<div>Welcome</div>"
    assert await store.get_project_theme(project.id) == "midnight"
    assert len({e.payload.run_id for e in events}) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_new_project_plans_without_context(workflow, mock_planner, project):
    await workflow.run(_job())

    mock_planner.plan.assert_awaited_once_with(PROMPT, "", None)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_context_grows_screen_by_screen(
    store, bus, mock_planner, mock_renderer, checkpoints, fast_policy, plan_factory, project
):
    await store.create_frame(project.id, "Existing", "<div>existing</div>")
    mock_planner.plan.return_value = plan_factory("midnight", "One", "Two", "Three")
    workflow = GenerationWorkflow(store, bus, mock_planner, mock_renderer, checkpoints, fast_policy)

    await workflow.run(_job())

    contexts = [call.args[1] for call in mock_renderer.render.await_args_list]
    assert len(contexts) == 3
    for i, context in enumerate(contexts):
        assert "<!-- Existing -->\n<div>existing</div>" in context
        for j, name in enumerate(["One", "Two", "Three"]):
            if j < i:
                assert f"<!-- {name} -->\n<div>{name}</div>" in context
            else:
                assert f"<div>{name}</div>" not in context
    indexes = [(call.kwargs["index"], call.kwargs["total"]) for call in mock_renderer.render.await_args_list]
    assert indexes == [(0, 3), (1, 3), (2, 3)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_continuation_keeps_stored_theme(
    store, bus, mock_planner, mock_renderer, checkpoints, fast_policy, project
):
    existing = await store.create_frame(project.id, "Home", "<div>home</div>")
    await store.set_project_theme(project.id, "ocean-breeze")
    workflow = GenerationWorkflow(store, bus, mock_planner, mock_renderer, checkpoints, fast_policy)
    subscription = bus.subscribe(channel_for_user("user-1"), topics=[Topic.ANALYSIS_COMPLETE])

    await workflow.run(_job())

    # planner saw the stored frames and theme; its own "midnight" is discarded
    prompt, context, theme = mock_planner.plan.await_args.args
    assert context == "<!-- Home -->\n<div>home</div>"
    assert theme == "ocean-breeze"
    (analysis,) = await _collect(subscription)
    assert analysis.payload.theme == "ocean-breeze"
    assert await store.get_project_theme(project.id) == "ocean-breeze"
    assert mock_renderer.render.await_args_list[0].args[2] == theme_css("ocean-breeze")
    assert existing.id in [f.id for f in await store.find_frames_by_project(project.id)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_continuation_without_stored_theme_adopts_planner_theme(workflow, store, project):
    await store.create_frame(project.id, "Home", "<div>home</div>")

    await workflow.run(_job())

    assert await store.get_project_theme(project.id) == "midnight"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_store_is_authoritative_over_job_frames(workflow, mock_planner, project):
    """Stale frames in the enqueued message do not make a continuation."""
    stale = [{"id": "gone", "title": "Gone", "htmlContent": "<div>gone</div>"}]

    await workflow.run(_job(frames=stale))

    assert mock_planner.plan.await_args.args[1] == ""


@pytest.mark.unit
@pytest.mark.asyncio
async def test_main_pipeline_is_append_only(workflow, store, project):
    before = [
        await store.create_frame(project.id, "A", "<div>a</div>"),
        await store.create_frame(project.id, "B", "<div>b</div>"),
    ]

    created = await workflow.run(_job())

    after = await store.find_frames_by_project(project.id)
    assert [f.id for f in after] == [f.id for f in before] + [f.id for f in created]
    for old in before:
        current = next(f for f in after if f.id == old.id)
        assert current.html_content == old.html_content
        assert current.updated_at == old.updated_at


@pytest.mark.unit
@pytest.mark.asyncio
async def test_partial_failure_keeps_earlier_frames(workflow, mock_renderer, bus, store, project):
    async def render(screen, context, style, index=0, total=1):
        if index == 1:
            raise RuntimeError("model overloaded")
        return f"<div>{screen.name}</div>"

    mock_renderer.render.side_effect = render
    subscription = bus.subscribe(channel_for_user("user-1"))

    with pytest.raises(StepFailedError) as exc_info:
        await workflow.run(_job())

    assert exc_info.value.step == "generate-screen-1"
    assert exc_info.value.attempts == 3
    events = await _collect(subscription)
    topics = [e.topic for e in events]
    assert topics[-1] == Topic.GENERATION_ERROR
    assert Topic.GENERATION_COMPLETE not in topics
    assert topics.count(Topic.FRAME_CREATED) == 1
    assert events[-1].payload.status == "failed"
    assert "model overloaded" in events[-1].payload.error

    stored = await store.find_frames_by_project(project.id)
    assert [f.title for f in stored] == ["Welcome"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resume_skips_completed_steps(workflow, mock_planner, mock_renderer, checkpoints, store, project):
    attempts = {"count": 0}

    async def flaky(screen, context, style, index=0, total=1):
        if index == 1 and attempts["count"] < 3:
            attempts["count"] += 1
            raise RuntimeError("crash")
        return f"<div>{screen.name}</div>"

    mock_renderer.render.side_effect = flaky
    run_id = "gen_resume"

    with pytest.raises(StepFailedError):
        await workflow.run(_job(), run_id=run_id)
    assert "generate-screen-0" in await checkpoints.completed_steps(run_id)

    created = await workflow.run(_job(), run_id=run_id)

    assert mock_planner.plan.await_count == 1
    stored = await store.find_frames_by_project(project.id)
    assert [f.title for f in stored] == ["Welcome", "Home Dashboard"]
    assert [f.id for f in created] == [f.id for f in stored]
    # the resumed screen still saw the first screen as context
    assert "<div>Welcome</div>" in mock_renderer.render.await_args.args[1]
    assert await checkpoints.load(run_id) == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finished_run_releases_frame_keys(workflow, store, project):
    run_id = "gen_done"
    created = await workflow.run(_job(), run_id=run_id)
    assert store._idempotency == {}

    frame = await store.create_frame(
        project.id, "Welcome", "<div>again</div>", idempotency_key=f"{run_id}:generate-screen-0"
    )

    assert frame.id not in {f.id for f in created}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_step_retry_does_not_duplicate_frames(workflow, bus, store, project):
    original_publish = bus.publish
    failed = {"done": False}

    async def publish(channel, topic, payload):
        if topic == Topic.FRAME_CREATED and not failed["done"]:
            failed["done"] = True
            raise ConnectionError("realtime transport down")
        return await original_publish(channel, topic, payload)

    bus.publish = publish

    await workflow.run(_job())

    stored = await store.find_frames_by_project(project.id)
    assert len(stored) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_project_fails_without_retry(workflow, bus):
    subscription = bus.subscribe(channel_for_user("user-1"))

    with pytest.raises(StepFailedError) as exc_info:
        await workflow.run(_job(project_id="missing"))

    assert exc_info.value.step == "load-project-state"
    assert exc_info.value.attempts == 1
    assert isinstance(exc_info.value.cause, ProjectNotFoundError)
    topics = [e.topic for e in await _collect(subscription)]
    assert topics == [Topic.GENERATION_START, Topic.GENERATION_ERROR]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_planner_retried_as_a_unit(workflow, mock_planner, bus, plan_factory, project):
    mock_planner.plan.side_effect = [ValueError("bad json"), plan_factory()]
    subscription = bus.subscribe(channel_for_user("user-1"), topics=[Topic.ANALYSIS_START])

    await workflow.run(_job())

    assert mock_planner.plan.await_count == 2
    # analysis.start is re-emitted by the retried step
    assert len(await _collect(subscription)) == 2
