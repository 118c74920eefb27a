"""Renderer tools exposed to the model."""

from typing import Literal

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from clients.images import ImageSearchClient

IMAGE_SEARCH_TOOL = "searchUnsplash"


class ImageSearchArgs(BaseModel):
    """Arguments of the image search tool."""

    query: str = Field(..., description="Image search query (e.g. 'modern loft', 'finance graph')")
    orientation: Literal["landscape", "portrait", "squarish"] = Field(default="landscape")


def build_image_search_tool(client: ImageSearchClient) -> BaseTool:
    """Wrap an image client as a tool the renderer can call."""

    def _search(query: str, orientation: str = "landscape") -> str:
        return client.search(query, orientation)

    async def _asearch(query: str, orientation: str = "landscape") -> str:
        return await client.asearch(query, orientation)

    return StructuredTool.from_function(
        func=_search,
        coroutine=_asearch,
        name=IMAGE_SEARCH_TOOL,
        description=(
            "Search for a high-quality photo. Use this whenever the screen needs an <img>. "
            "Returns an image URL, or an empty string if nothing was found."
        ),
        args_schema=ImageSearchArgs,
    )
