"""Screen Renderer - produces markup for one screen, with tool calls."""

import time
from collections.abc import Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool
from pydantic import ValidationError as PydanticValidationError

from core import RenderError, extract_screen_markup, get_logger
from models.domain import Frame, ScreenSpec
from monitoring import metrics_collector

from .planner import message_text
from .prompts import GENERATION_SYSTEM_PROMPT, build_regeneration_prompt, build_screen_prompt

logger = get_logger(__name__)


class ScreenRenderer:
    """
    Generative Renderer.

    Runs a bounded tool loop: the model may call tools (image search) for up
    to ``max_steps`` turns; the text of the last turn is the screen markup.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        tools: Sequence[BaseTool] = (),
        max_steps: int = 5,
    ) -> None:
        self.llm = llm
        self.tools = list(tools)
        self.max_steps = max_steps
        self._tools_by_name = {tool.name: tool for tool in self.tools}
        self._bound = llm.bind_tools(self.tools) if self.tools else llm

    async def render(
        self,
        screen: ScreenSpec,
        context: str,
        theme_style: str,
        index: int = 0,
        total: int = 1,
    ) -> str:
        """
        Generate markup for one planned screen.

        Args:
            screen: Screen to render
            context: Previously produced frames (title + markup), in order
            theme_style: CSS variables of the resolved theme
            index: Position of the screen in the plan (0-based)
            total: Number of screens in the plan

        Returns:
            Cleaned markup with a single root element where the model produced one

        Raises:
            RenderError: The model returned no text
        """
        prompt = build_screen_prompt(screen, index, total, context, theme_style)
        logger.info("rendering", screen_id=screen.id, index=index, context_length=len(context))
        return await self._complete(prompt, operation="render", label=screen.id)

    async def regenerate(self, frame: Frame, prompt: str, context: str, theme_style: str) -> str:
        """Generate replacement markup for an existing frame."""
        message = build_regeneration_prompt(frame, prompt, context, theme_style)
        logger.info("regenerating", frame_id=frame.id, context_length=len(context))
        return await self._complete(message, operation="regenerate", label=frame.id)

    async def _complete(self, prompt: str, operation: str, label: str) -> str:
        messages: list[BaseMessage] = [
            SystemMessage(content=GENERATION_SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ]

        start = time.perf_counter()
        try:
            text = await self._run_tool_loop(messages, label)
        except Exception:
            metrics_collector.record_llm_call(operation, "error", time.perf_counter() - start)
            raise
        metrics_collector.record_llm_call(operation, "success", time.perf_counter() - start)

        markup = extract_screen_markup(text)
        if not markup:
            raise RenderError(f"Model returned no markup for {label}")
        return markup

    async def _run_tool_loop(self, messages: list[BaseMessage], label: str) -> str:
        text = ""
        for step in range(1, self.max_steps + 1):
            response = await self._bound.ainvoke(messages)
            messages.append(response)
            text = message_text(response)

            tool_calls = getattr(response, "tool_calls", None) or []
            if not tool_calls:
                return text

            for call in tool_calls:
                output = await self._call_tool(call)
                messages.append(
                    ToolMessage(content=output, tool_call_id=call.get("id") or call["name"], name=call["name"])
                )
            logger.debug("tool_turn", label=label, step=step, calls=len(tool_calls))

        logger.warning("tool_loop_exhausted", label=label, max_steps=self.max_steps)
        return text

    async def _call_tool(self, call: dict) -> str:
        tool = self._tools_by_name.get(call["name"])
        if tool is None:
            logger.warning("unknown_tool", tool=call["name"])
            return f"Unknown tool: {call['name']}"
        try:
            result = await tool.ainvoke(call.get("args") or {})
        except PydanticValidationError as e:
            logger.warning("tool_args_invalid", tool=call["name"], error=str(e))
            return f"Invalid arguments for {call['name']}: {e}"
        return "" if result is None else str(result)
