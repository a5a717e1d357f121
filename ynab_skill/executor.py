"""
MCP Skill Executor for YNAB
===========================
Talks to the YNAB MCP server over stdio, so the tools can be used as a skill
without a permanent MCP connection in the host.

Usage:
    ynab-skill-executor --list                          # List available tools
    ynab-skill-executor --describe ynab_list_accounts   # Get tool schema
    ynab-skill-executor --call '{"tool": "ynab_list_budgets", "arguments": {}}'

By default the server is started as ``python -m ynab_skill`` with the current
environment. A ``mcp-config.json`` (``--config``) with ``command``, ``args``
and ``env`` overrides that.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Sequence

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from ynab_skill.config import ROOT


def server_parameters(config_path: Path | None = None) -> StdioServerParameters:
    config: dict[str, Any] = {}
    if config_path is not None:
        with open(config_path, encoding="utf-8") as f:
            config = json.load(f)

    env = dict(os.environ)
    env.update(config.get("env") or {})
    return StdioServerParameters(
        command=config.get("command", sys.executable),
        args=config.get("args", ["-m", "ynab_skill"]),
        env=env,
    )


def render_content(content: Any, stream=None) -> None:
    """Print text blocks verbatim, anything else as JSON."""
    out = stream or sys.stdout
    items = content if isinstance(content, list) else [content]
    for item in items:
        if getattr(item, "text", None) is not None:
            print(item.text, file=out)
        else:
            print(json.dumps(
                item.__dict__ if hasattr(item, "__dict__") else item,
                indent=2, ensure_ascii=False, default=str,
            ), file=out)


async def execute(args: argparse.Namespace, params: StdioServerParameters) -> int:
    async with stdio_client(params) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()

            if args.list:
                response = await session.list_tools()
                tools = [{"name": t.name, "description": t.description} for t in response.tools]
                print(json.dumps(tools, indent=2, ensure_ascii=False))
                return 0

            if args.describe:
                response = await session.list_tools()
                for tool in response.tools:
                    if tool.name == args.describe:
                        print(json.dumps({
                            "name": tool.name,
                            "description": tool.description,
                            "inputSchema": tool.inputSchema,
                        }, indent=2, ensure_ascii=False))
                        return 0
                print(f"Tool not found: {args.describe}", file=sys.stderr)
                return 1

            call_data = json.loads(args.call)
            response = await session.call_tool(call_data["tool"], call_data.get("arguments", {}))
            render_content(response.content)
            return 1 if response.isError else 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="YNAB MCP Skill Executor")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--call", help="JSON tool call: {\"tool\": \"name\", \"arguments\": {...}}")
    group.add_argument("--describe", help="Get detailed schema for a tool")
    group.add_argument("--list", action="store_true", help="List all available tools")
    parser.add_argument("--config", type=Path, help="mcp-config.json with command/args/env")
    args = parser.parse_args(argv)

    config_path = args.config
    if config_path is None and (ROOT / "mcp-config.json").exists():
        config_path = ROOT / "mcp-config.json"

    try:
        return asyncio.run(execute(args, server_parameters(config_path)))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
