"""
Expense breakdowns for an event: by category, by payer, and the
combined summary the API and the PDF report show.
"""
from __future__ import annotations

from models import DEFAULT_CATEGORY
from settlement import compute_settlements
from splitter import coerce_amount, compute_balances, compute_total, as_records

UNKNOWN_PAYER = "unknown"


def _group(expenses, key_for) -> dict:
    groups = {}
    for expense in as_records(expenses):
        key = key_for(expense)
        bucket = groups.setdefault(key, {"items": [], "total": 0.0})
        bucket["items"].append(expense)
        bucket["total"] += coerce_amount(expense.get("amount"))
    return groups


def group_by_category(expenses) -> dict:
    """category -> {"items": [...], "total": float}; missing category is 'other'."""
    return _group(expenses, lambda e: e.get("category") or DEFAULT_CATEGORY)


def group_by_payer(expenses) -> dict:
    """payer display name -> {"items": [...], "total": float}; no name is 'unknown'."""
    return _group(expenses, lambda e: str(e.get("paid_by") or UNKNOWN_PAYER))


def summarize_expenses(expenses, participants) -> dict:
    balances = compute_balances(expenses, participants)
    return {
        "total": compute_total(expenses),
        "balances": balances,
        "settlements": compute_settlements(balances),
        "by_category": group_by_category(expenses),
        "by_payer": group_by_payer(expenses),
    }
