"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton
from langchain_core.language_models import BaseChatModel

from agents import ScreenPlanner, ScreenRenderer, build_image_search_tool
from clients.images import ImageSearchClient
from consumer import ConsumerFactory
from handlers.jobs import JobDispatcher
from models.config import GeminiConfig
from models.loader import ModelLoader
from store import FrameStore, InMemoryFrameStore
from streaming import EventBus
from workflow import (
    CheckpointStore,
    FileCheckpointStore,
    GenerationWorkflow,
    InMemoryCheckpointStore,
    RegenerationWorkflow,
    RetryPolicy,
)

from .config import Settings, get_settings


class CoreModule(Module):
    """
    Core dependencies.

    ``llm``, ``store`` and ``image_client`` may be passed in to replace the
    defaults (tests, alternative store backends).
    """

    def __init__(
        self,
        settings: Settings,
        llm: BaseChatModel | None = None,
        store: FrameStore | None = None,
        image_client: ImageSearchClient | None = None,
    ) -> None:
        self.settings = settings
        self.llm = llm
        self.store = store
        self.image_client = image_client

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_store(self) -> FrameStore:
        """Frame store (in-memory unless one was supplied)."""
        return self.store or InMemoryFrameStore()

    @singleton
    @provider
    def provide_event_bus(self) -> EventBus:
        return EventBus(queue_size=self.settings.subscriber_queue_size)

    @singleton
    @provider
    def provide_checkpoints(self) -> CheckpointStore:
        """File-backed checkpoints when a directory is configured."""
        if self.settings.checkpoint_dir:
            return FileCheckpointStore(self.settings.checkpoint_dir)
        return InMemoryCheckpointStore()

    @singleton
    @provider
    def provide_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.step_max_attempts,
            base_delay=self.settings.step_retry_base_delay,
            max_delay=self.settings.step_retry_max_delay,
        )

    @singleton
    @provider
    def provide_image_client(self) -> ImageSearchClient:
        if self.image_client is not None:
            return self.image_client
        return ImageSearchClient(
            access_key=self.settings.unsplash_access_key or None,
            base_url=self.settings.unsplash_url,
            timeout=self.settings.image_timeout,
            cache_size=self.settings.image_cache_size,
            cache_ttl=self.settings.image_cache_ttl,
        )

    @singleton
    @provider
    def provide_chat_model(self) -> BaseChatModel:
        """Provide the Gemini chat model for planning and rendering."""
        if self.llm is not None:
            return self.llm
        config = GeminiConfig(
            model_name=self.settings.gemini_model,
            api_key=self.settings.gemini_api_key or None,
            temperature=self.settings.gemini_temperature,
            max_tokens=self.settings.gemini_max_tokens,
        )
        return ModelLoader.load(config)

    @singleton
    @provider
    def provide_planner(self, llm: BaseChatModel) -> ScreenPlanner:
        return ScreenPlanner(llm)

    @singleton
    @provider
    def provide_renderer(self, llm: BaseChatModel, images: ImageSearchClient) -> ScreenRenderer:
        return ScreenRenderer(
            llm,
            tools=[build_image_search_tool(images)],
            max_steps=self.settings.renderer_max_steps,
        )

    @singleton
    @provider
    def provide_generation_workflow(
        self,
        store: FrameStore,
        bus: EventBus,
        planner: ScreenPlanner,
        renderer: ScreenRenderer,
        checkpoints: CheckpointStore,
        policy: RetryPolicy,
    ) -> GenerationWorkflow:
        return GenerationWorkflow(store, bus, planner, renderer, checkpoints, policy)

    @singleton
    @provider
    def provide_regeneration_workflow(
        self,
        store: FrameStore,
        bus: EventBus,
        renderer: ScreenRenderer,
        checkpoints: CheckpointStore,
        policy: RetryPolicy,
    ) -> RegenerationWorkflow:
        return RegenerationWorkflow(store, bus, renderer, checkpoints, policy)

    @singleton
    @provider
    def provide_dispatcher(
        self, generation: GenerationWorkflow, regeneration: RegenerationWorkflow
    ) -> JobDispatcher:
        return JobDispatcher(generation, regeneration)

    @singleton
    @provider
    def provide_consumer_factory(self, bus: EventBus, store: FrameStore) -> ConsumerFactory:
        """Client-side consumers with the configured reset and watchdog timers."""
        return ConsumerFactory(
            bus,
            store,
            reset_delay=self.settings.completed_reset_delay,
            watchdog_timeout=self.settings.consumer_watchdog_timeout,
        )


def create_container(settings: Settings | None = None, **overrides) -> Injector:
    """Create configured injector. ``overrides``: llm, store, image_client."""
    return Injector([CoreModule(settings or get_settings(), **overrides)])
