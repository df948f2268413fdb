"""MCP server that clips web pages into Markdown documents."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from mdclip.config import settings
from mdclip.converter.fetcher import ResourceFetcher
from mdclip.converter.pipeline import Converter
from mdclip.exceptions import MdclipError
from mdclip.logger import logger, setup_logging
from mdclip.models import ConversionResult
from mdclip.timing import timeit

# Initialize logging as soon as possible
setup_logging()


class TypedFastMCP(FastMCP):
    """Typed FastMCP subclass with server state attribute.

    This allows proper type checking for the state attribute
    instead of using type: ignore comments.
    """

    state: "ServerState | None"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize TypedFastMCP with state set to None."""
        super().__init__(*args, **kwargs)
        self.state = None


class ServerState:
    """Holds the shared fetcher and converter for the lifetime of the server."""

    def __init__(self) -> None:
        """Initialize the server state."""
        self.fetcher = ResourceFetcher(
            timeout=settings.fetch_timeout,
            user_agent=settings.fetch_user_agent,
        )
        self.converter = Converter(settings, fetcher=self.fetcher)

    async def stop(self) -> None:
        """Cleanup logic for client resources."""
        logger.info("Stopping mdclip server resources...")
        await self.converter.close()


@asynccontextmanager
async def lifespan(app: TypedFastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage application lifespan: create and close the shared HTTP client."""
    logger.info("Starting mdclip server resources...")
    state = ServerState()
    app.state = state
    try:
        yield {"state": state}
    finally:
        await state.stop()


def log_tool_call(tool_name: str, details: str) -> None:
    """Log a tool call.

    Args:
        tool_name: Name of the tool being called
        details: Details about the tool call (e.g., URL)

    """
    logger.info("[TOOL CALLED] %s: %s", tool_name, details)


def get_state() -> ServerState:
    """Get the server state from the context."""
    if mcp.state is None:
        raise RuntimeError("Server state not initialized")
    return mcp.state


def to_payload(result: ConversionResult) -> dict[str, Any]:
    """Shape a conversion result as the tool response."""
    return {
        "title": result.title,
        "filename": result.filename,
        "markdown": result.markdown,
        "images": result.image_list,
    }


mcp = TypedFastMCP("mdclip", lifespan=lifespan)


@mcp.tool(
    title="clip_html",
    description=settings.tool_clip_html_desc,
)
@timeit("clip_html tool")
async def clip_html(
    html: Annotated[str, settings.arg_clip_html_html_desc],
    url: Annotated[str, settings.arg_clip_html_url_desc],
) -> dict[str, Any]:
    """Convert page HTML into a Markdown document."""
    log_tool_call("clip_html", f"URL: {url} ({len(html)} chars)")
    converter = get_state().converter
    try:
        result = await converter.convert(html, url)
    except MdclipError as e:
        raise ToolError(f"{type(e).__name__}: {e}") from e
    return to_payload(result)


@mcp.tool(
    title="clip_url",
    description=settings.tool_clip_url_desc,
)
@timeit("clip_url tool")
async def clip_url(
    url: Annotated[str, settings.arg_clip_url_url_desc],
) -> dict[str, Any]:
    """Fetch a page and convert its article into a Markdown document."""
    log_tool_call("clip_url", f"URL: {url}")
    converter = get_state().converter
    try:
        result = await converter.clip_url(url)
    except MdclipError as e:
        raise ToolError(f"{type(e).__name__}: {e}") from e
    return to_payload(result)


def main() -> None:
    """Run the MCP server."""
    mcp.run(transport="streamable-http", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
