"""Model Loader - Gemini chat model behind the langchain_core interface."""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI

from core import get_logger
from .config import GeminiConfig


logger = get_logger(__name__)


class ModelLoadError(Exception):
    """Model loading failed."""
    pass


class ModelLoader:
    """Model lifecycle manager."""

    _instance: Optional[BaseChatModel] = None

    @classmethod
    def load(cls, config: GeminiConfig) -> BaseChatModel:
        """Build the chat model for a config."""
        logger.info("loading", model=config.model_name)
        if not config.api_key:
            raise ModelLoadError("GOOGLE_API_KEY is not configured")
        try:
            model = ChatGoogleGenerativeAI(
                model=config.model_name,
                google_api_key=config.api_key,
                temperature=config.temperature,
                max_output_tokens=config.max_tokens,
                top_p=config.top_p,
                top_k=config.top_k,
                max_retries=config.max_retries,
            )
        except Exception as e:
            logger.error("load_failed", error=str(e))
            raise ModelLoadError(f"Failed to load {config.model_name}") from e
        cls._instance = model
        return model

    @classmethod
    def unload(cls) -> None:
        """Drop the cached model."""
        if cls._instance:
            logger.info("unloading")
            cls._instance = None
