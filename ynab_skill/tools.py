"""YNAB tools: one adapter per capability plus the dispatch table.

Every adapter follows the same line: build the endpoint, call the request
pipeline with the response shape, then either render text or hand the
failure to ``format_error``. Adapters never raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ynab_skill.api import YnabApi, build_endpoint
from ynab_skill.errors import Failure, Outcome, Success, ToolResult, YnabError, format_error
from ynab_skill.formatting import NA, bullet, format_amount, open_accounts, or_na, visible_category_groups
from ynab_skill.models import (
    AccountEnvelope,
    AccountsEnvelope,
    BudgetsEnvelope,
    CategoriesEnvelope,
    CategoryEnvelope,
    CreatedTransactionEnvelope,
    CreateTransactionInput,
    GetAccountBalanceInput,
    GetBudgetSummaryInput,
    GetCategoryInfoInput,
    ListAccountsInput,
    ListBudgetsInput,
    ListCategoriesInput,
    ListTransactionsInput,
    MonthEnvelope,
    TransactionsEnvelope,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)

CURRENT_MONTH = "current"


async def _fetch(api: YnabApi, endpoint: str, shape: type[E]) -> Outcome[Optional[E]]:
    """GET + shape validation. Success(None) means the body was empty."""
    return await api.request(endpoint, shape=shape)


def _not_found(message: str) -> ToolResult:
    logger.warning(message)
    return ToolResult.error(message)


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------

async def list_budgets(api: YnabApi, args: ListBudgetsInput) -> ToolResult:
    endpoint = build_endpoint("/budgets", [("last_knowledge_of_server", args.last_knowledge_of_server)])
    outcome = await _fetch(api, endpoint, BudgetsEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "list_budgets")

    data = outcome.value.data if outcome.value else None
    budgets = (data.budgets if data else None) or []
    knowledge = data.server_knowledge if data else None
    if not budgets:
        if args.last_knowledge_of_server is not None:
            return ToolResult.text("No new or updated budgets found since last knowledge.", knowledge)
        return ToolResult.text("No budgets found.", knowledge)

    lines = [bullet(b.name, b.id) for b in budgets]
    return ToolResult.text("Available Budgets:\n" + "\n".join(lines), knowledge)


async def list_accounts(api: YnabApi, args: ListAccountsInput) -> ToolResult:
    endpoint = build_endpoint(
        f"/budgets/{args.budget_id}/accounts",
        [("last_knowledge_of_server", args.last_knowledge_of_server)],
    )
    outcome = await _fetch(api, endpoint, AccountsEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "list_accounts")

    data = outcome.value.data if outcome.value else None
    accounts = open_accounts((data.accounts if data else None) or [])
    knowledge = data.server_knowledge if data else None
    if not accounts:
        return ToolResult.text("No open accounts found for this budget.", knowledge)

    lines = [
        f"- {a.name} (Type: {a.type}, Balance: {format_amount(a.balance)}, ID: {a.id})"
        for a in accounts
    ]
    return ToolResult.text("Open Accounts:\n" + "\n".join(lines), knowledge)


def transactions_endpoint(args: ListTransactionsInput) -> str:
    # account-scoped path when an account is given, budget-scoped otherwise
    if args.account_id:
        path = f"/budgets/{args.budget_id}/accounts/{args.account_id}/transactions"
    else:
        path = f"/budgets/{args.budget_id}/transactions"
    return build_endpoint(path, [
        ("since_date", args.since_date),
        ("type", args.type),
        ("last_knowledge_of_server", args.last_knowledge_of_server),
    ])


async def list_transactions(api: YnabApi, args: ListTransactionsInput) -> ToolResult:
    outcome = await _fetch(api, transactions_endpoint(args), TransactionsEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "list_transactions")

    data = outcome.value.data if outcome.value else None
    transactions = (data.transactions if data else None) or []
    knowledge = data.server_knowledge if data else None
    if not transactions:
        return ToolResult.text("No transactions found matching the criteria.", knowledge)

    lines = [
        f"- {t.date} | {or_na(t.payee_name)} | {or_na(t.category_name)} | "
        f"{format_amount(t.amount)} (ID: {t.id})"
        for t in transactions
    ]
    return ToolResult.text("Transactions:\n" + "\n".join(lines), knowledge)


async def get_account_balance(api: YnabApi, args: GetAccountBalanceInput) -> ToolResult:
    outcome = await _fetch(api, f"/budgets/{args.budget_id}/accounts/{args.account_id}", AccountEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "get_account_balance")

    account = outcome.value.data.account if outcome.value else None
    if account is None:
        return _not_found(f"Account with ID {args.account_id} not found.")
    return ToolResult.text(
        f"Account: {account.name} (ID: {account.id})\nBalance: {format_amount(account.balance)}"
    )


async def list_categories(api: YnabApi, args: ListCategoriesInput) -> ToolResult:
    endpoint = build_endpoint(
        f"/budgets/{args.budget_id}/categories",
        [("last_knowledge_of_server", args.last_knowledge_of_server)],
    )
    outcome = await _fetch(api, endpoint, CategoriesEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "list_categories")

    data = outcome.value.data if outcome.value else None
    groups = visible_category_groups((data.category_groups if data else None) or [])
    knowledge = data.server_knowledge if data else None
    if not groups:
        if args.last_knowledge_of_server is not None:
            return ToolResult.text("No new or updated categories found since last knowledge.", knowledge)
        return ToolResult.text("No categories found.", knowledge)

    sections = []
    for group in groups:
        cats = "\n".join(f"  - {c.name} (ID: {c.id})" for c in group.categories)
        sections.append(f"{group.name}:\n{cats}")
    return ToolResult.text("Categories:\n\n" + "\n\n".join(sections), knowledge)


async def get_budget_summary(api: YnabApi, args: GetBudgetSummaryInput) -> ToolResult:
    month_key = args.month or CURRENT_MONTH
    outcome = await _fetch(api, f"/budgets/{args.budget_id}/months/{month_key}", MonthEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "get_budget_summary")

    month = outcome.value.data.month if outcome.value else None
    if month is None:
        return _not_found(f"Budget month '{month_key}' not found for budget {args.budget_id}.")

    age = f"{month.age_of_money}" if month.age_of_money is not None else NA
    lines = [
        f"Budget Summary for Month: {month.month}",
        "-----------------------------------",
        f"Income: {format_amount(month.income)}",
        f"Budgeted: {format_amount(month.budgeted)}",
        f"Activity (Spending): {format_amount(month.activity)}",
        f"To Be Budgeted (TBB): {format_amount(month.to_be_budgeted)}",
        f"Age of Money (Days): {age}",
        f"Note: {or_na(month.note)}",
    ]
    return ToolResult.text("\n".join(lines))


async def get_category_info(api: YnabApi, args: GetCategoryInfoInput) -> ToolResult:
    month_key = args.month or CURRENT_MONTH
    endpoint = f"/budgets/{args.budget_id}/months/{month_key}/categories/{args.category_id}"
    outcome = await _fetch(api, endpoint, CategoryEnvelope)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "get_category_info")

    cat = outcome.value.data.category if outcome.value else None
    if cat is None:
        return _not_found(f"Category with ID {args.category_id} not found for month '{month_key}'.")

    if cat.goal_percentage_complete is not None:
        pct = f"{cat.goal_percentage_complete}%"
    else:
        pct = NA
    lines = [
        f"Category Info: {cat.name} (ID: {cat.id})",
        "----------------------------------------",
        f"Budgeted: {format_amount(cat.budgeted)}",
        f"Activity: {format_amount(cat.activity)}",
        f"Balance: {format_amount(cat.balance)}",
        f"Goal Type: {or_na(cat.goal_type)}",
        f"Goal Target: {format_amount(cat.goal_target or 0)}",
        f"Goal Percentage Complete: {pct}",
        f"Note: {or_na(cat.note)}",
    ]
    return ToolResult.text("\n".join(lines))


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------

def transaction_payload(args: CreateTransactionInput) -> dict[str, Any]:
    return {"transaction": args.model_dump(exclude={"budget_id"}, exclude_none=True)}


async def _create_transaction(api: YnabApi, args: CreateTransactionInput) -> Outcome[str]:
    outcome = await api.request(
        f"/budgets/{args.budget_id}/transactions",
        method="POST",
        body=transaction_payload(args),
        shape=CreatedTransactionEnvelope,
    )
    if isinstance(outcome, Failure):
        return outcome
    if outcome.value is None:
        return Failure(YnabError.unknown("Received empty response from YNAB API after creating transaction."))

    data = outcome.value.data
    created_id = (data.transaction_ids or [None])[0]
    if not created_id and data.transaction is not None:
        created_id = data.transaction.id
    if not created_id:
        return Failure(YnabError.parse(
            "Could not find created transaction ID in YNAB response.",
            original_error=data.model_dump(),
        ))
    return Success(created_id)


async def create_transaction(api: YnabApi, args: CreateTransactionInput) -> ToolResult:
    outcome = await _create_transaction(api, args)
    if isinstance(outcome, Failure):
        return format_error(outcome.error, "create_transaction")
    logger.info("Created transaction %s in budget %s", outcome.value, args.budget_id)
    return ToolResult.text(f"Transaction created successfully. ID: {outcome.value}")


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

Handler = Callable[[YnabApi, Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: Handler
    read_only: bool = True

    def input_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in [
        ToolSpec(
            "ynab_list_budgets",
            "List the YNAB budgets available to the token, with their IDs.",
            ListBudgetsInput,
            list_budgets,
        ),
        ToolSpec(
            "ynab_list_accounts",
            "List open accounts in a budget with type and balance. Closed accounts are left out.",
            ListAccountsInput,
            list_accounts,
        ),
        ToolSpec(
            "ynab_list_transactions",
            "List transactions in a budget, or in one account, optionally since a date or by type.",
            ListTransactionsInput,
            list_transactions,
        ),
        ToolSpec(
            "ynab_get_account_balance",
            "Get the current balance of one account.",
            GetAccountBalanceInput,
            get_account_balance,
        ),
        ToolSpec(
            "ynab_list_categories",
            "List visible categories grouped by category group.",
            ListCategoriesInput,
            list_categories,
        ),
        ToolSpec(
            "ynab_get_budget_summary",
            "Summarize a budget month: income, budgeted, activity, to be budgeted, age of money.",
            GetBudgetSummaryInput,
            get_budget_summary,
        ),
        ToolSpec(
            "ynab_get_category_info",
            "Show budgeted, activity, balance and goal details for one category in a month.",
            GetCategoryInfoInput,
            get_category_info,
        ),
        ToolSpec(
            "ynab_create_transaction",
            "Create a transaction. Amount is in milliunits (e.g. -12340 is a $12.34 outflow).",
            CreateTransactionInput,
            create_transaction,
            read_only=False,
        ),
    ]
}


def list_tools() -> list[dict[str, Any]]:
    return [{"name": t.name, "description": t.description} for t in TOOLS.values()]


def describe_tool(name: str) -> dict[str, Any] | None:
    spec = TOOLS.get(name)
    if spec is None:
        return None
    return {"name": spec.name, "description": spec.description, "inputSchema": spec.input_schema()}


def _validation_reasons(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


async def call_tool(api: YnabApi, name: str, arguments: dict[str, Any] | None) -> ToolResult:
    """Validate arguments, then run the named tool. Never raises."""
    spec = TOOLS.get(name)
    if spec is None:
        return ToolResult.error(f"Unknown tool: {name}")
    try:
        args = spec.input_model.model_validate(arguments or {})
    except ValidationError as e:
        return ToolResult.error(f"Invalid arguments for {name}: {_validation_reasons(e)}")

    try:
        return await spec.handler(api, args)
    except Exception as e:
        logger.exception("Unhandled error in %s", name)
        return format_error(YnabError.unknown(str(e), original_error=e), name)
