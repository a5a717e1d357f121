"""Tests for the MCP server surface: tool listing and call dispatch."""

import pytest
from mcp import types
from mcp.server.lowlevel import Server

from ynab_skill.server import ToolCallError, build_server, dispatch, tool_definitions
from ynab_skill.tools import TOOLS


class TestToolDefinitions:
    def test_one_definition_per_tool(self):
        assert [t.name for t in tool_definitions()] == list(TOOLS)

    def test_schemas_are_objects(self):
        for tool in tool_definitions():
            assert tool.inputSchema["type"] == "object"

    def test_read_only_annotation(self):
        hints = {t.name: t.annotations.readOnlyHint for t in tool_definitions()}
        assert hints["ynab_list_budgets"] is True
        assert hints["ynab_create_transaction"] is False


class TestDispatch:
    async def test_success_returns_text_content(self, api, upstream):
        upstream.reply(200, {"data": {"budgets": [{"id": "b1", "name": "Home"}]}})

        content = await dispatch(api, "ynab_list_budgets", {})

        assert content == [types.TextContent(type="text", text="Available Budgets:\n- Home (ID: b1)")]

    async def test_error_result_raises_with_text(self, api, upstream):
        upstream.reply(404, {"error": {"id": "404", "name": "not_found", "detail": "Budget not found."}})

        with pytest.raises(ToolCallError, match="YNAB API Error: Budget not found."):
            await dispatch(api, "ynab_list_accounts", {"budget_id": "nope"})

    async def test_unknown_tool_raises(self, api):
        with pytest.raises(ToolCallError, match="Unknown tool: ynab_nope"):
            await dispatch(api, "ynab_nope", {})


async def test_build_server(api):
    server = build_server(api)
    assert isinstance(server, Server)
    assert server.name == "ynab"
