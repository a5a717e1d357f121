"""MCP server exposing the YNAB tools over stdio.

stdout carries the MCP protocol, so all logging goes to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from ynab_skill import __version__
from ynab_skill.api import YnabApi
from ynab_skill.config import load_settings
from ynab_skill.tools import TOOLS, call_tool

logger = logging.getLogger(__name__)

SERVER_NAME = "ynab"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


class ToolCallError(Exception):
    """Raised inside the call_tool handler so the protocol marks the result isError.

    The server turns the exception text into the single text block of an
    ``isError`` result, so the message reaches the client unchanged.
    """


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", stream=sys.stderr)


def tool_definitions() -> list[types.Tool]:
    return [
        types.Tool(
            name=spec.name,
            description=spec.description,
            inputSchema=spec.input_schema(),
            annotations=types.ToolAnnotations(
                readOnlyHint=spec.read_only,
                destructiveHint=False,
                idempotentHint=spec.read_only,
                openWorldHint=True,
            ),
        )
        for spec in TOOLS.values()
    ]


async def dispatch(api: YnabApi, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
    result = await call_tool(api, name, arguments)
    if result.is_error:
        raise ToolCallError(result.first_text)
    return [types.TextContent(type="text", text=block.text) for block in result.content]


def build_server(api: YnabApi) -> Server:
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return tool_definitions()

    @server.call_tool()
    async def _call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        logger.info("%s called with: %s", name, ", ".join(f"{k}={v!r}" for k, v in (arguments or {}).items()))
        return await dispatch(api, name, arguments)

    return server


async def serve() -> None:
    settings = load_settings()
    if not settings.has_token:
        logger.warning("YNAB_API_TOKEN is not set; YNAB will reject requests with 401")

    async with YnabApi(settings) as api:
        server = build_server(api)
        async with stdio_server() as (read_stream, write_stream):
            logger.info("YNAB MCP server listening on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    configure_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
