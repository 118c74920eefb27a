"""Screen Planner - asks the model for a theme and an ordered screen list."""

import time

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError as PydanticValidationError

from core import JSONParseError, PlanParseError, extract_json, get_logger
from models.domain import GenerationPlan
from monitoring import metrics_collector

from .prompts import ANALYSIS_PROMPT, build_planning_prompt

logger = get_logger(__name__)


def message_text(message) -> str:
    """Text content of a chat message (string or list of content parts)."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content)


class ScreenPlanner:
    """Generative Planner."""

    def __init__(self, llm: BaseChatModel) -> None:
        self.llm = llm

    async def plan(
        self,
        prompt: str,
        context: str = "",
        existing_theme: str | None = None,
    ) -> GenerationPlan:
        """
        Produce a GenerationPlan with 1-4 screens.

        Args:
            prompt: User request
            context: Existing frames serialized for continuity (empty for a new project)
            existing_theme: Theme stored on the project, if any

        Raises:
            PlanParseError: Output is not JSON or does not fit the plan schema
        """
        messages = [
            SystemMessage(content=ANALYSIS_PROMPT),
            HumanMessage(content=build_planning_prompt(prompt, context, existing_theme)),
        ]

        logger.info("planning", continuation=bool(context), prompt_length=len(prompt))
        start = time.perf_counter()
        try:
            response = await self.llm.ainvoke(messages)
        except Exception:
            metrics_collector.record_llm_call("plan", "error", time.perf_counter() - start)
            raise
        metrics_collector.record_llm_call("plan", "success", time.perf_counter() - start)

        text = message_text(response)
        try:
            plan = GenerationPlan.model_validate(extract_json(text))
        except JSONParseError as e:
            logger.warning("plan_not_json", error=str(e), preview=text[:200])
            raise PlanParseError(f"Planner returned no JSON object: {e}") from e
        except PydanticValidationError as e:
            logger.warning("plan_invalid", errors=e.error_count())
            raise PlanParseError(f"Planner output does not match the plan schema: {e}") from e

        logger.info("planned", theme=plan.theme, screens=[s.id for s in plan.screens])
        return plan
