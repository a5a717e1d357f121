"""YNAB CLI: run the tools from a terminal.

Usage:
  ynab-skill --list
  ynab-skill --describe ynab_list_accounts
  ynab-skill --call '{"tool":"ynab_list_accounts","arguments":{"budget_id":"last-used"}}'
  ynab-skill list-accounts last-used
  ynab-skill create-transaction last-used <account-id> -12340 2024-05-01 --payee-name Cafe
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Sequence

import httpx
from pydantic import ValidationError

from ynab_skill.api import YnabApi
from ynab_skill.config import Settings, load_settings
from ynab_skill.errors import ToolResult
from ynab_skill.server import configure_logging
from ynab_skill.tools import TOOLS, call_tool, describe_tool, list_tools

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Subcommands: name -> (tool, argument fields)
# ---------------------------------------------------------------------------

COMMANDS: dict[str, tuple[str, tuple[str, ...]]] = {
    "list-budgets": ("ynab_list_budgets", ("last_knowledge_of_server",)),
    "list-accounts": ("ynab_list_accounts", ("budget_id", "last_knowledge_of_server")),
    "list-transactions": (
        "ynab_list_transactions",
        ("budget_id", "account_id", "since_date", "type", "last_knowledge_of_server"),
    ),
    "get-balance": ("ynab_get_account_balance", ("budget_id", "account_id")),
    "list-categories": ("ynab_list_categories", ("budget_id", "last_knowledge_of_server")),
    "get-summary": ("ynab_get_budget_summary", ("budget_id", "month")),
    "get-category-info": ("ynab_get_category_info", ("budget_id", "category_id", "month")),
    "create-transaction": (
        "ynab_create_transaction",
        ("budget_id", "account_id", "amount", "date", "payee_name", "category_id", "memo", "cleared", "approved"),
    ),
}


def _budget(p: argparse.ArgumentParser) -> None:
    p.add_argument("budget_id", metavar="budget-id", help="Budget ID (e.g. last-used or UUID)")


def _knowledge(p: argparse.ArgumentParser) -> None:
    p.add_argument("--last-knowledge", dest="last_knowledge_of_server", type=int,
                   help="Only return changes since this server knowledge")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ynab-skill", description="YNAB CLI executor")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--list", action="store_true", help="List all tools")
    group.add_argument("--describe", type=str, metavar="TOOL", help="Describe a tool")
    group.add_argument("--call", type=str, metavar="JSON", help='Call: {"tool":"name","arguments":{...}}')

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("list-budgets", help="List available budgets")
    _knowledge(p)

    p = sub.add_parser("list-accounts", help="List open accounts for a budget")
    _budget(p)
    _knowledge(p)

    p = sub.add_parser("list-transactions", help="List transactions for a budget or account")
    _budget(p)
    p.add_argument("--account-id", help="Only this account")
    p.add_argument("--since-date", help="Since date (YYYY-MM-DD)")
    p.add_argument("--type", choices=["uncategorized", "unapproved"], help="Filter by type")
    _knowledge(p)

    p = sub.add_parser("get-balance", help="Get balance for a specific account")
    _budget(p)
    p.add_argument("account_id", metavar="account-id", help="Account ID")

    p = sub.add_parser("list-categories", help="List categories for a budget")
    _budget(p)
    _knowledge(p)

    p = sub.add_parser("get-summary", help="Get a budget month summary")
    _budget(p)
    p.add_argument("--month", help="Month (YYYY-MM-DD), default current")

    p = sub.add_parser("get-category-info", help="Get info for a category in a month")
    _budget(p)
    p.add_argument("category_id", metavar="category-id", help="Category ID")
    p.add_argument("--month", help="Month (YYYY-MM-DD), default current")

    p = sub.add_parser("create-transaction", help="Create a new transaction")
    _budget(p)
    p.add_argument("account_id", metavar="account-id", help="Account ID")
    p.add_argument("amount", type=int, help="Amount in milliunits (e.g. -12340 for -12.34)")
    p.add_argument("date", help="Date (YYYY-MM-DD)")
    p.add_argument("--payee-name", help="Payee name (max 50 chars)")
    p.add_argument("--category-id", help="Category ID")
    p.add_argument("--memo", help="Memo (max 200 chars)")
    p.add_argument("--cleared", choices=["cleared", "uncleared", "reconciled"], help="Cleared status")
    p.add_argument("--approved", action=argparse.BooleanOptionalAction, default=None, help="Approved status")

    return parser


def command_arguments(parsed: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    tool, fields = COMMANDS[parsed.command]
    arguments = {f: getattr(parsed, f) for f in fields if getattr(parsed, f, None) is not None}
    return tool, arguments


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

async def _run_tool(
    settings: Settings,
    name: str,
    arguments: dict[str, Any],
    client: httpx.AsyncClient | None = None,
) -> ToolResult:
    async with YnabApi(settings, client=client) as api:
        return await call_tool(api, name, arguments)


def _print_json(obj: Any, stream=None) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2), file=stream or sys.stdout)


def _check_arguments(name: str, arguments: Any) -> str | None:
    if not isinstance(arguments, dict):
        return "arguments must be a JSON object"
    try:
        TOOLS[name].input_model.model_validate(arguments)
    except ValidationError as e:
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in e.errors()
        )
    return None


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> int:
    if sys.stdout.encoding and sys.stdout.encoding.lower() != "utf-8" and hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")

    parser = build_parser()
    parsed = parser.parse_args(argv)
    configure_logging(logging.DEBUG if parsed.verbose else logging.WARNING)

    if parsed.list:
        _print_json(list_tools())
        return 0

    if parsed.describe:
        doc = describe_tool(parsed.describe)
        if doc is None:
            _print_json({"error": f"Unknown tool: {parsed.describe}"}, sys.stderr)
            return 1
        _print_json(doc)
        return 0

    as_json = False
    if parsed.call:
        try:
            payload = json.loads(parsed.call)
        except json.JSONDecodeError as e:
            _print_json({"error": f"Invalid JSON: {e}"}, sys.stderr)
            return 1
        if not isinstance(payload, dict):
            _print_json({"error": "Call payload must be a JSON object"}, sys.stderr)
            return 1
        tool_name = payload.get("tool", "")
        arguments = payload.get("arguments") or {}
        as_json = True
    elif parsed.command:
        tool_name, arguments = command_arguments(parsed)
    else:
        parser.print_help()
        return 1

    if tool_name not in TOOLS:
        _print_json({"error": f"Unknown tool: {tool_name}. Use --list to see available tools."}, sys.stderr)
        return 1
    problem = _check_arguments(tool_name, arguments)
    if problem:
        print(f"Error: invalid arguments for {tool_name}: {problem}", file=sys.stderr)
        return 1

    settings = settings or load_settings()
    if not settings.has_token:
        logger.warning("YNAB_API_TOKEN is not set. Set the env var or add a token to config.json")

    result = asyncio.run(_run_tool(settings, tool_name, arguments, client=client))
    if as_json:
        _print_json(result.to_dict())
    else:
        print(result.first_text)
    return 1 if result.is_error else 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
