"""Presentation helpers. Milliunits become display strings only here."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from ynab_skill.models import Account, CategoryGroup

NA = "N/A"
_CENTS = Decimal("0.01")


def format_amount(milliunits: int) -> str:
    """-12340 -> "-12.34", 500000 -> "500.00".

    Rounds the exact value of the float quotient, ties away from zero; a
    negative amount that rounds to zero keeps its sign ("-0.00").
    """
    value = Decimal(milliunits / 1000).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return f"{value:.2f}"


def or_na(value: Any) -> str:
    if value is None or value == "":
        return NA
    return str(value)


def bullet(name: str, item_id: str, *extras: str) -> str:
    inner = ", ".join([f"ID: {item_id}", *extras])
    return f"- {name} ({inner})"


def open_accounts(accounts: Iterable[Account]) -> list[Account]:
    return [a for a in accounts if not a.closed and not a.deleted]


def visible_category_groups(groups: Iterable[CategoryGroup]) -> list[CategoryGroup]:
    """Drop hidden/deleted groups and categories, then groups left empty."""
    visible = []
    for group in groups:
        if group.hidden or group.deleted:
            continue
        cats = [c for c in group.categories if not c.hidden and not c.deleted]
        if cats:
            visible.append(group.model_copy(update={"categories": cats}))
    return visible
