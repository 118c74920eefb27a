"""Generative agents: screen planner and screen renderer."""

from .planner import ScreenPlanner, message_text
from .renderer import ScreenRenderer
from .themes import BASE_VARIABLES, THEME_LIST, Theme, find_theme, theme_css
from .tools import IMAGE_SEARCH_TOOL, build_image_search_tool

__all__ = [
    "ScreenPlanner",
    "ScreenRenderer",
    "message_text",
    "BASE_VARIABLES",
    "THEME_LIST",
    "Theme",
    "find_theme",
    "theme_css",
    "IMAGE_SEARCH_TOOL",
    "build_image_search_tool",
]
