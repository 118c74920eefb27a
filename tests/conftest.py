"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from langchain_core.messages import AIMessage

from core.config import Settings
from models.domain import GenerationPlan, ScreenSpec
from store import InMemoryFrameStore
from streaming import EventBus
from workflow import InMemoryCheckpointStore, RetryPolicy


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["MOCKUP_LOG_LEVEL"] = "DEBUG"
    os.environ["MOCKUP_STEP_RETRY_BASE_DELAY"] = "0"
    os.environ["GOOGLE_API_KEY"] = "test-api-key"  # Mock API key
    os.environ.pop("UNSPLASH_ACCESS_KEY", None)


# ============================================================================
# Scripted Chat Model
# ============================================================================

class ScriptedModel:
    """
    Stand-in for a langchain chat model.

    Each ``ainvoke`` pops the next scripted item: a string (returned as an
    AIMessage), a message, an exception (raised) or a callable taking the
    message list. Every call's messages are recorded in ``calls``.
    """

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []
        self.bound_tools = None

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(list(messages))
        if not self.responses:
            raise AssertionError("ScriptedModel ran out of responses")
        item = self.responses.pop(0)
        if callable(item) and not isinstance(item, BaseException):
            item = item(messages)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return AIMessage(content=item)
        return item

    def prompts(self) -> list[str]:
        """Human prompt of every call, in order."""
        return [call[1].content for call in self.calls]


@pytest.fixture
def scripted_model():
    return ScriptedModel


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings."""
    return Settings(
        gemini_api_key="test-api-key",
        unsplash_access_key="",
        step_max_attempts=3,
        step_retry_base_delay=0.0,
        step_retry_max_delay=0.0,
        completed_reset_delay=0.05,
        consumer_watchdog_timeout=5.0,
    )


@pytest.fixture
def store():
    return InMemoryFrameStore()


@pytest.fixture
def bus():
    return EventBus(queue_size=64)


@pytest.fixture
def checkpoints():
    return InMemoryCheckpointStore()


@pytest.fixture
def fast_policy():
    """Retry policy without delays."""
    return RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0)


@pytest_asyncio.fixture
async def project(store):
    """Empty project owned by user-1."""
    return await store.create_project("user-1", "Fitness", project_id="proj-1")


# ============================================================================
# Plan / Model Fixtures
# ============================================================================

def make_plan(theme: str = "midnight", *names: str) -> GenerationPlan:
    names = names or ("Welcome", "Home Dashboard")
    return GenerationPlan(
        theme=theme,
        screens=[
            ScreenSpec(
                id=name.lower().replace(" ", "-"),
                name=name,
                purpose=f"{name} screen",
                visual_description=f"Layout for {name}",
            )
            for name in names
        ],
    )


@pytest.fixture
def plan_factory():
    return make_plan


@pytest.fixture
def mock_planner(plan_factory):
    """Planner whose plan() returns a two-screen midnight plan."""
    planner = MagicMock()
    planner.plan = AsyncMock(return_value=plan_factory())
    return planner


@pytest.fixture
def mock_renderer():
    """Renderer that returns ``<div>{screen name}</div>`` for every screen."""
    renderer = MagicMock()

    def _render(screen, context, theme_style, index=0, total=1):
        return f"<div>{screen.name}</div>"

    def _regenerate(frame, prompt, context, theme_style):
        return f"<div>{frame.title} v2</div>"

    renderer.render = AsyncMock(side_effect=_render)
    renderer.regenerate = AsyncMock(side_effect=_regenerate)
    return renderer
