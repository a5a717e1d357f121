"""Pydantic shapes for tool inputs and YNAB response envelopes.

Amounts are integer milliunits throughout. Response models ignore fields we
don't render; input models forbid unknown fields.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
LAST_USED = "last-used"


# ---------------------------------------------------------------------------
# Tool inputs
# ---------------------------------------------------------------------------

class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


# identifiers are trimmed; free text (payee, memo) is sent as given
BudgetId = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1),
    Field(description=f"The budget ID: '{LAST_USED}' or a budget UUID from ynab_list_budgets."),
]
ResourceId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
IsoDate = Annotated[str, Field(pattern=DATE_PATTERN)]
LastKnowledge = Annotated[
    Optional[Annotated[StrictInt, Field(ge=0)]],
    Field(description="Server knowledge from a previous call; only changes since then are returned."),
]
Month = Annotated[
    Optional[IsoDate],
    Field(description="Budget month as YYYY-MM-DD (first day of month). Defaults to the current month."),
]


class ListBudgetsInput(ToolInput):
    last_knowledge_of_server: LastKnowledge = None


class ListAccountsInput(ToolInput):
    budget_id: BudgetId
    last_knowledge_of_server: LastKnowledge = None


class ListTransactionsInput(ToolInput):
    budget_id: BudgetId
    account_id: Optional[ResourceId] = Field(default=None, description="Only this account's transactions.")
    since_date: Optional[IsoDate] = Field(
        default=None, description="Only transactions on or after this date (YYYY-MM-DD)."
    )
    type: Optional[Literal["uncategorized", "unapproved"]] = Field(
        default=None, description="Only 'uncategorized' or 'unapproved' transactions."
    )
    last_knowledge_of_server: LastKnowledge = None


class GetAccountBalanceInput(ToolInput):
    budget_id: BudgetId
    account_id: ResourceId = Field(description="Account ID.")


class ListCategoriesInput(ToolInput):
    budget_id: BudgetId
    last_knowledge_of_server: LastKnowledge = None


class GetBudgetSummaryInput(ToolInput):
    budget_id: BudgetId
    month: Month = None


class GetCategoryInfoInput(ToolInput):
    budget_id: BudgetId
    category_id: ResourceId = Field(description="Category ID (from ynab_list_categories).")
    month: Month = None


class CreateTransactionInput(ToolInput):
    budget_id: BudgetId
    account_id: ResourceId = Field(description="Account ID.")
    amount: StrictInt = Field(description="Amount in milliunits (e.g. $12.34 = 12340). Negative for outflow.")
    date: IsoDate = Field(description="Transaction date (YYYY-MM-DD).")
    payee_name: Optional[Annotated[str, Field(max_length=50)]] = Field(
        default=None, description="Payee name (max 50 chars)."
    )
    category_id: Optional[ResourceId] = Field(default=None, description="Category ID.")
    memo: Optional[Annotated[str, Field(max_length=200)]] = Field(
        default=None, description="Memo (max 200 chars)."
    )
    cleared: Optional[Literal["cleared", "uncleared", "reconciled"]] = Field(
        default=None, description="Cleared status."
    )
    approved: Optional[bool] = Field(default=None, description="Whether the transaction is approved.")


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------

class Resource(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Budget(Resource):
    id: str
    name: str
    last_modified_on: Optional[str] = None
    first_month: Optional[str] = None
    last_month: Optional[str] = None


class Account(Resource):
    id: str
    name: str
    type: str
    on_budget: Optional[bool] = None
    closed: bool = False
    note: Optional[str] = None
    balance: int
    cleared_balance: Optional[int] = None
    uncleared_balance: Optional[int] = None
    deleted: bool = False


class Transaction(Resource):
    id: str
    date: str
    amount: int
    memo: Optional[str] = None
    cleared: str
    approved: bool
    account_id: str
    account_name: Optional[str] = None
    payee_name: Optional[str] = None
    category_name: Optional[str] = None
    deleted: bool = False


class Category(Resource):
    id: str
    category_group_id: Optional[str] = None
    name: str
    hidden: bool
    deleted: bool = False
    note: Optional[str] = None
    budgeted: int
    activity: int
    balance: int
    goal_type: Optional[str] = None
    goal_target: Optional[int] = None
    goal_percentage_complete: Optional[int] = None


class CategoryGroup(Resource):
    id: str
    name: str
    hidden: bool
    deleted: bool = False
    categories: list[Category] = Field(default_factory=list)


class BudgetMonth(Resource):
    month: str
    note: Optional[str] = None
    income: int
    budgeted: int
    activity: int
    to_be_budgeted: int
    age_of_money: Optional[int] = None


class CreatedTransaction(Resource):
    id: Optional[str] = None


class BudgetsData(Resource):
    budgets: Optional[list[Budget]] = None
    server_knowledge: Optional[int] = None


class AccountsData(Resource):
    accounts: Optional[list[Account]] = None
    server_knowledge: Optional[int] = None


class AccountData(Resource):
    account: Optional[Account] = None


class TransactionsData(Resource):
    transactions: Optional[list[Transaction]] = None
    server_knowledge: Optional[int] = None


class CategoriesData(Resource):
    category_groups: Optional[list[CategoryGroup]] = None
    server_knowledge: Optional[int] = None


class CategoryData(Resource):
    category: Optional[Category] = None


class MonthData(Resource):
    month: Optional[BudgetMonth] = None


class CreatedTransactionData(Resource):
    transaction_ids: Optional[list[str]] = None
    transaction: Optional[CreatedTransaction] = None
    duplicate_import_ids: Optional[list[str]] = None
    server_knowledge: Optional[int] = None


class BudgetsEnvelope(Resource):
    data: BudgetsData


class AccountsEnvelope(Resource):
    data: AccountsData


class AccountEnvelope(Resource):
    data: AccountData


class TransactionsEnvelope(Resource):
    data: TransactionsData


class CategoriesEnvelope(Resource):
    data: CategoriesData


class CategoryEnvelope(Resource):
    data: CategoryData


class MonthEnvelope(Resource):
    data: MonthData


class CreatedTransactionEnvelope(Resource):
    data: CreatedTransactionData
