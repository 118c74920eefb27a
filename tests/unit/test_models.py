"""Domain and event model tests."""

import pytest
from pydantic import ValidationError

from models import EventPayload, Frame, GenerationPlan, LifecycleEvent, ProjectSnapshot, ScreenSpec, Topic
from models.config import GeminiConfig, GeminiModel


def _screen(i: int) -> dict:
    return {"id": f"screen-{i}", "name": f"Screen {i}", "purpose": "p", "visualDescription": "v"}


@pytest.mark.unit
def test_plan_accepts_camel_case_keys():
    plan = GenerationPlan.model_validate({"theme": "midnight", "screens": [_screen(1)]})
    assert plan.screens[0].visual_description == "v"


@pytest.mark.unit
@pytest.mark.parametrize("count", [0, 5])
def test_plan_requires_one_to_four_screens(count):
    with pytest.raises(ValidationError):
        GenerationPlan.model_validate({"theme": "midnight", "screens": [_screen(i) for i in range(count)]})


@pytest.mark.unit
def test_plan_requires_theme():
    with pytest.raises(ValidationError):
        GenerationPlan.model_validate({"theme": "", "screens": [_screen(1)]})


@pytest.mark.unit
def test_snapshot_continuation():
    assert not ProjectSnapshot().is_continuation
    assert ProjectSnapshot(frames=[Frame(id="f1", title="Home")]).is_continuation


@pytest.mark.unit
def test_event_wire_format():
    """Wire payloads use camelCase and omit unset fields."""
    event = LifecycleEvent(
        channel="user:u1",
        topic=Topic.FRAME_CREATED,
        payload=EventPayload(
            project_id="p1",
            screen_id="home",
            frame=Frame(id="f1", project_id="p1", title="Home", html_content="<div></div>"),
        ),
    )

    wire = event.to_wire()

    assert wire["topic"] == "frame.created"
    assert wire["payload"]["projectId"] == "p1"
    assert wire["payload"]["screenId"] == "home"
    assert wire["payload"]["frame"]["htmlContent"] == "<div></div>"
    assert "status" not in wire["payload"]
    assert "publishedAt" in wire


@pytest.mark.unit
def test_event_roundtrip_from_wire():
    payload = EventPayload(project_id="p1", screens=[ScreenSpec(id="a", name="A")], total_screens=1)
    event = LifecycleEvent(channel="user:u1", topic=Topic.ANALYSIS_COMPLETE, payload=payload)

    parsed = LifecycleEvent.model_validate(event.to_wire())

    assert parsed.topic == Topic.ANALYSIS_COMPLETE
    assert parsed.payload.screens[0].id == "a"


@pytest.mark.unit
def test_gemini_config_defaults(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "env-key")
    config = GeminiConfig()

    assert config.model_name == GeminiModel.PRO.value
    assert config.api_key == "env-key"
    assert not config.is_flash_model
    assert GeminiConfig(model_name=GeminiModel.FLASH.value).is_flash_model
